"""Exception hierarchy for the delivery workflow.

Every error carries a ``user_message`` in Spanish that the redemption page
can show as-is. Internal details (remote messages, paths, ids) stay in the
exception arguments and the logs, never in ``user_message``.

Invalid aggregate data is still reported with Protean's ``ValidationError``.
"""


class DeliveryError(Exception):
    """Base class for expected failures of the delivery workflow."""

    user_message = "No ha sido posible procesar la solicitud. Inténtalo de nuevo más tarde."
    http_status = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------
class TokenInvalid(DeliveryError):
    """The token is empty, malformed or unknown."""

    user_message = "El enlace de entrega no es válido. Comprueba que lo has copiado completo."
    http_status = 404


class TokenAlreadyUsed(DeliveryError):
    """The token was already redeemed, or a redemption is in flight."""

    user_message = "Este enlace ya se ha utilizado. La entrega de este pedido ya está registrada."
    http_status = 409


class TokenIssuanceFailed(DeliveryError):
    """No unique token could be generated or persisted."""

    user_message = "No ha sido posible generar el enlace de entrega."
    http_status = 500


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderNotFound(DeliveryError):
    user_message = "No se ha encontrado el pedido asociado a este enlace."
    http_status = 404


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------
class UploadValidation(DeliveryError):
    """The submitted files cannot be accepted. Retryable by resubmission."""

    NO_FILES = "no_files"
    SIZE_EXCEEDED = "size_exceeded"
    EMPTY = "empty"
    PARTIAL = "partial"
    FAILED = "failed"

    _MESSAGES = {
        NO_FILES: "Selecciona al menos un archivo para completar la entrega.",
        SIZE_EXCEEDED: "El archivo «{file_name}» supera el tamaño máximo permitido.",
        EMPTY: "El archivo «{file_name}» está vacío.",
        PARTIAL: "El archivo «{file_name}» no se ha recibido completo. Vuelve a enviarlo.",
        FAILED: "No ha sido posible recibir el archivo «{file_name}».",
    }

    def __init__(self, code: str, file_name: str | None = None):
        self.code = code
        self.file_name = file_name
        super().__init__(f"{code}: {file_name}" if file_name else code)

    @property
    def user_message(self) -> str:
        template = self._MESSAGES.get(self.code, self._MESSAGES[self.FAILED])
        return template.format(file_name=self.file_name or "")


# ---------------------------------------------------------------------------
# Remote storage
# ---------------------------------------------------------------------------
class StorageUnavailable(DeliveryError):
    """The document storage could not complete the operation. Retryable."""

    user_message = (
        "No ha sido posible guardar los archivos en este momento. "
        "Vuelve a intentarlo en unos minutos; el enlace sigue siendo válido."
    )
    http_status = 502


class MissingFolder(StorageUnavailable):
    pass


class MissingToken(StorageUnavailable):
    pass


class ReadError(StorageUnavailable):
    pass


class TransportError(StorageUnavailable):
    pass


class APIError(StorageUnavailable):
    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class InvalidResponse(StorageUnavailable):
    pass


# ---------------------------------------------------------------------------
# Mail
# ---------------------------------------------------------------------------
class MailDeliveryFailed(DeliveryError):
    """A notification could not be handed to the mail transport. Never fatal."""

    user_message = "No ha sido posible enviar la notificación por correo."
    http_status = 502
