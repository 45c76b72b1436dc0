from pathlib import Path
from dotenv import load_dotenv  # pip install python-dotenv
import os

# ищем файл, имя приходит из переменной или берём .env
env_file = os.getenv("ENV_FILE", ".env")
load_dotenv(Path(__file__).parent.parent / env_file)

ENV = os.getenv("ENV", "dev").lower()
bot_token = (
    os.getenv("BOT_TOKEN_PROD") if ENV == "prod" else os.getenv("BOT_TOKEN_DEV")
) or os.getenv("BOT_TOKEN")

log_level = os.getenv("LOG_LEVEL", "INFO").upper()

openai_api_key = os.getenv("OPENAI_API_KEY", "")
openai_base_url = os.getenv("OPENAI_BASE_URL", "")
openai_model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
question_count = int(os.getenv("QUESTION_COUNT", "5"))

# "openai" or "file"; without an API key only the bundled quizzes work
quiz_source = os.getenv("QUIZ_SOURCE", "openai" if openai_api_key else "file").lower()
quiz_path = Path(os.getenv("QUIZ_PATH", Path(__file__).parent / "data" / "quizzes.json"))

# Idle chats beyond this count lose their in-memory session
max_sessions = int(os.getenv("MAX_SESSIONS", "1000"))
