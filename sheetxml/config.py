from pathlib import Path
import os
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Config:
    # Base paths
    OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", os.path.expanduser("~/converter_x_output")))
    LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
    LOG_FILE_PATH = os.getenv("LOG_FILE_PATH", str(LOG_DIR / "audit.log"))

    PROJECT_NAME = "Excel to XML Converter"
    DEBUG = os.getenv("DEBUG", "False").lower() == "true"

    # Security. A missing key is reported where encryption is requested,
    # not at import time.
    ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY")
    ENCRYPTION_SALT = os.getenv("ENCRYPTION_SALT", "converter_x_fixed_salt").encode()
    KDF_ITERATIONS = int(os.getenv("KDF_ITERATIONS", "100000"))

    # File Upload
    MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
    ALLOWED_EXTENSIONS = {".xls", ".xlsx"}

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # XML Settings
    XML_ROOT_ELEMENT = os.getenv("XML_ROOT_ELEMENT", "CALLREPORT")
    XML_HEADER_ELEMENT = os.getenv("XML_HEADER_ELEMENT", "HEADER")
    XML_BODY_ELEMENT = os.getenv("XML_BODY_ELEMENT", "BODY")
    XML_ROW_ELEMENT = os.getenv("XML_ROW_ELEMENT", "CALLREPORT_DATA")

    _SECRET_SETTINGS = {"ENCRYPTION_KEY", "ENCRYPTION_SALT"}

    @classmethod
    def get_settings(cls) -> Dict[str, Any]:
        """Get all non-secret settings as a dictionary."""
        return {
            name: getattr(cls, name) for name in dir(cls)
            if name.isupper()
            and not name.startswith('_')
            and name not in cls._SECRET_SETTINGS
            and not callable(getattr(cls, name))
        }

    @classmethod
    def validate_file_extension(cls, filename: str) -> bool:
        """Validate if the file extension is allowed."""
        return Path(filename).suffix.lower() in cls.ALLOWED_EXTENSIONS

    @classmethod
    def get_output_path(cls, filename: str) -> Path:
        """Get the full path for an output file."""
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        return cls.OUTPUT_DIR / filename

# Create singleton instance
config = Config()
