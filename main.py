from __future__ import annotations

import logging
import os

from assistant.app import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()

print("GEMINI_API_KEY:", bool(os.getenv("GEMINI_API_KEY")))
print("OPENAI_API_KEY:", bool(os.getenv("OPENAI_API_KEY")))
print("GOOGLE_CLIENT_ID:", bool(os.getenv("GOOGLE_CLIENT_ID")))
print("MODELS:", ", ".join(app.state.settings.model_candidates))


if __name__ == "__main__":
  import uvicorn

  uvicorn.run(app,
              host=os.getenv("HOST", "0.0.0.0"),
              port=int(os.getenv("PORT", "8000")))
