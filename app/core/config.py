# app/core/config.py
#
# Lädt Konfigurationswerte aus der .env-Datei.
# BASE_DIR zeigt auf das Projektverzeichnis (drei Ebenen über dieser Datei).
# Provider-Quelle, Paginierung und Scan-Verhalten des Identifikationsmoduls
# sind hier zentral gesammelt.

import os
from pathlib import Path
from dotenv import load_dotenv

# Basisverzeichnis des Projekts (app/core/config.py → core → app → Projektroot)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# .env-Datei laden (im Projektroot)
dotenv_path = BASE_DIR / ".env"
load_dotenv(dotenv_path)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # JSON-Datei mit Aktionen und vorregistrierten Providern
    PROVIDERS_FILE = None
    providers_env = os.getenv("PROVIDERS_FILE")
    if providers_env:
        PROVIDERS_FILE = (BASE_DIR / providers_env).resolve()
    else:
        PROVIDERS_FILE = BASE_DIR / "app" / "data" / "providers.json"

    # Paginierung der Provider-Listen
    DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

    # Scan-Strategie: False = Abbruch beim ersten VALID/AMBIGUOUS-Treffer,
    # True = AMBIGUOUS merken und weiter nach einem vollständigen Treffer suchen
    IDENTIFY_PREFER_VALID = _env_bool("IDENTIFY_PREFER_VALID", False)

    # Optionales Zeitlimit (Sekunden) pro Regex-Auswertung
    MATCH_TIMEOUT = None
    timeout_env = os.getenv("MATCH_TIMEOUT")
    if timeout_env:
        MATCH_TIMEOUT = float(timeout_env)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server (nur für den direkten Start über `python -m app.main`)
    HOST = os.getenv("HOST", "127.0.0.1")
    PORT = int(os.getenv("PORT", "8000"))

# Globale Settings-Instanz
settings = Settings()
