"""Errors raised by the reminder pipeline, the session and the send endpoints.

Every error carries the HTTP status and the short Portuguese message the API
puts in its ``{"erro": ...}`` body.
"""
from __future__ import annotations


class DueBotError(Exception):
    status_code = 500
    public_message = "Erro interno."

    def __init__(self, detail: str | None = None, *, public: str | None = None):
        if public:
            self.public_message = public
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class NetworkError(DueBotError):
    public_message = "Erro ao consultar /listar ou enviar mensagens."


class InvalidRecordError(DueBotError):
    public_message = "Erro ao consultar /listar ou enviar mensagens."

    def __init__(self, index: int, name: str, raw: str):
        super().__init__(f"invalid dataVenc {raw!r} for record #{index} ({name})")
        self.index = index
        self.name = name
        self.raw = raw


class SessionUnavailableError(DueBotError):
    public_message = "WhatsApp não conectado."


class InvalidScheduleError(DueBotError):
    status_code = 400
    public_message = "Data/hora de envio já passou."


class SendError(DueBotError):
    public_message = "Erro ao enviar mensagem."
