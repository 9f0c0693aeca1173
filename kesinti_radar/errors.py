"""Outage data error taxonomy with localized user-facing messages."""

_MESSAGES: dict[str, dict[str, str]] = {
    "no_connection": {
        "tr": "Bağlantı yok gibi görünüyor.",
        "en": "There seems to be no connection.",
    },
    "server": {
        "tr": "Sunucu hata verdi.",
        "en": "The server returned an error.",
    },
    "empty": {
        "tr": "Bu kriterlere uygun veri yok.",
        "en": "No data matches these criteria.",
    },
    "decoding": {
        "tr": "Veri okunamadı.",
        "en": "The data could not be read.",
    },
}


class OutageDataError(Exception):
    """Base class for failures reported by outage data sources."""

    code = "server"
    retryable = True

    def __init__(self, detail: str | None = None):
        self.detail = detail
        super().__init__(detail or self.localized("en"))

    def localized(self, locale: str = "tr") -> str:
        messages = _MESSAGES[self.code]
        return messages.get(locale, messages["en"])


class NoConnectionError(OutageDataError):
    code = "no_connection"


class ServerError(OutageDataError):
    code = "server"


class EmptyResultError(OutageDataError):
    """A valid but empty result. Callers present it, they do not retry it."""

    code = "empty"
    retryable = False


class DecodingError(OutageDataError):
    code = "decoding"
    retryable = False
