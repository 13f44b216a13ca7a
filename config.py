"""Global configuration for the diet app reminder service."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")

# Supabase (preference store)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Logging
LOG_DIR = Path(os.getenv("LOCALAPPDATA", ".")) / "dietapp-reminders" / "logs"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR.mkdir(parents=True, exist_ok=True)
