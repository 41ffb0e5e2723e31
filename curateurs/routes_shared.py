from pathlib import Path as FSPath
from fastapi.templating import Jinja2Templates

BASE_DIR = FSPath(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

__all__ = ["BASE_DIR", "TEMPLATES_DIR", "templates"]
