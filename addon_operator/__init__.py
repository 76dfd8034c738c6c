# Kopf patches go first: kopf._cogs.helpers.thirdparty must be replaced
# before any Kopf module is loaded (see addon_operator/utils/override.py).
from addon_operator.utils.override import patch_kopf_thirdparty
patch_kopf_thirdparty()

try:
    import os
    from dotenv import load_dotenv, find_dotenv

    env_file = os.environ.get("ENV_FILE", ".env")
    path = find_dotenv(filename=env_file, raise_error_if_not_found=True)
    print(f"Loading environment variables from {path}")
    load_dotenv(dotenv_path=path)

except IOError:
    # No file to set environment variables
    pass

from addon_operator.handlers import (  # noqa: E402
    addon,
    operator_resources,
    probes,
)

__all__ = [
    "addon",
    "operator_resources",
    "probes",
]

__version__ = "0.1.0"
