import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file for local development
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "t", "true", "y", "yes", "on")


# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(module)s - %(message)s'
DEBUG = _env_bool("DEBUG", False) # Dumps scopes and resolution paths

# --- Disk option defaults (overridable per request through the parameter scopes) ---
DISK_OPTION_PREFIX = os.getenv("DISK_OPTION_PREFIX", "disk")
DEFAULT_BOOTABLE = _env_bool("DEFAULT_BOOTABLE", False)

# --- Kafka ---
KAFKA_BOOTSTRAP_SERVERS = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "kafka:9092").split(',')
KAFKA_PROVISIONING_TOPIC = os.getenv("KAFKA_PROVISIONING_TOPIC", "vm.disks.requested")
KAFKA_RESULTS_TOPIC = os.getenv("KAFKA_RESULTS_TOPIC", "vm.disks.results")
KAFKA_CONSUMER_GROUP_ID = os.getenv("KAFKA_CONSUMER_GROUP_ID", "disk-provisioning-workers-group")
MAX_RETRY_ATTEMPTS = int(os.getenv("MAX_RETRY_ATTEMPTS", 10))

# --- VM API ---
VM_API_URL = os.getenv("VM_API_URL", "http://vm-api:8000")
VM_API_TIMEOUT_SECONDS = float(os.getenv("VM_API_TIMEOUT_SECONDS", 30.0))
VM_API_RETRY_DELAY_SECONDS = int(os.getenv("VM_API_RETRY_DELAY_SECONDS", 60))


def configure_logging(level: str = None):
    logging.basicConfig(level=(level or ("DEBUG" if DEBUG else LOG_LEVEL)), format=LOG_FORMAT)
