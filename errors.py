class RelayRequestError(Exception):
    """A relay request rejected before the WebSocket upgrade."""

    status_code = 400
    detail = "Bad request"

    def __init__(self, detail: str = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class MissingRoomIdentifier(RelayRequestError):
    status_code = 400
    detail = "Missing room parameter"


class ProtocolMismatch(RelayRequestError):
    status_code = 426
    detail = "Expected WebSocket"


class NotARelayEndpoint(RelayRequestError):
    status_code = 404
    detail = "Not Found"
