import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the question engine; migrations run in the deploy step."""
  port = os.getenv("PORT", "8080")
  logger.info("Starting certforge-engine on port %s (run alembic upgrade head before deploy)...", port)
  # Replace this process so uvicorn receives SIGTERM directly.
  os.execvp("uvicorn", ["uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"])


if __name__ == "__main__":
  main()
