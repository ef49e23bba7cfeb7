from enum import Enum

# Span attribute keys for OpenTelemetry tracing of REST calls and live sessions
class SpanAttr(str, Enum):
    SESSION_ID = "session.id"
    SESSION_KIND = "deepgram.session.kind"
    OPERATION_NAME = "operation.name"
    SERVICE_NAME = "service.name"
    SERVICE_VERSION = "service.version"
    HTTP_METHOD = "http.request.method"
    HTTP_ROUTE = "url.path"
    STATUS_CODE = "http.response.status_code"
    ERROR_TYPE = "error.type"
    ERROR_MESSAGE = "error.message"
    PEER_SERVICE = "peer.service"
    SERVER_ADDRESS = "server.address"
