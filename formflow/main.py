import logging

from fastapi import FastAPI

from formflow.api.conversation import router as conversation_router
from formflow.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "conversation_id",
            "blueprint_id",
            "field_id",
            "state",
            "hook",
            "plugin",
            "intent",
            "reason",
            "error",
        ):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Formflow Conversation Engine", version="1.0.0")

app.include_router(conversation_router, tags=["conversation"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
