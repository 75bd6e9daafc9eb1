"""Which fields get logged, and when."""

from dataclasses import dataclass

from httplog.fields import RequestField, ResponseField


@dataclass(frozen=True)
class Config:
    """Ordered field selectors for the two emission points.

    Attributes:
        request_fields: Logged when the request is received.
        response_req_fields: Request-derived fields logged on completion, for
            single-line workflows.
        response_fields: Response-derived fields logged on completion.
    """

    request_fields: tuple[str, ...] = ()
    response_req_fields: tuple[str, ...] = ()
    response_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "request_fields", tuple(self.request_fields))
        object.__setattr__(self, "response_req_fields", tuple(self.response_req_fields))
        object.__setattr__(self, "response_fields", tuple(self.response_fields))


def default_req_res_config() -> Config:
    """Log once on receipt and once on completion."""
    return Config(
        request_fields=(
            RequestField.TIME,
            RequestField.ID,
            RequestField.REMOTE_IP,
            RequestField.HOST,
            RequestField.ARGS,
            RequestField.METHOD,
            RequestField.PATH,
            RequestField.BYTES_IN,
            RequestField.AUTH,
        ),
        response_fields=(
            ResponseField.STATUS,
            ResponseField.BYTES_OUT,
            ResponseField.CONTENT_TYPE,
            ResponseField.TIME,
            ResponseField.LOCATION_ARGS,
            ResponseField.LOCATION_HOST,
        ),
    )


def default_response_only_config() -> Config:
    """Log a single line on completion, folding in the request fields."""
    return Config(
        response_req_fields=(
            RequestField.TIME,
            RequestField.ID,
            RequestField.REMOTE_IP,
            RequestField.HOST,
            RequestField.URI,
            RequestField.METHOD,
            RequestField.PATH,
            RequestField.BYTES_IN,
            RequestField.AUTH,
        ),
        response_fields=(
            ResponseField.STATUS,
            ResponseField.BYTES_OUT,
            ResponseField.CONTENT_TYPE,
            ResponseField.TIME,
            ResponseField.LOCATION,
        ),
    )
