from .config.settings import get_config
from .utils.logging import Logger, get_logger
from .utils.terminal import supports_utf8
from .utils.version import get_docker_status, get_pyproject_version

__license__ = "MIT"
__version__ = get_pyproject_version()


if supports_utf8():
    SOURCEBRIDGE_HEADER = f"""
╔═══════════════════════════════════════════════════════════════════════════════╗
║                              S O U R C E B R I D G E                          ║
╠═══════════════════════════════════════════════════════════════════════════════╣
║                                                                               ║
║  Version: {__version__:<68}║
║  Docker: {"Yes" if get_docker_status() else "No":<69}║
║  License: {__license__:<68}║
║                                                                               ║
╚═══════════════════════════════════════════════════════════════════════════════╝
    """.strip()
else:
    SOURCEBRIDGE_HEADER = f"""
+-------------------------------------------------------------------------------+
|                              S O U R C E B R I D G E                          |
+-------------------------------------------------------------------------------+
|                                                                               |
|  Version: {__version__:<68}|
|  Docker: {"Yes" if get_docker_status() else "No":<69}|
|  License: {__license__:<68}|
|                                                                               |
+-------------------------------------------------------------------------------+
    """.strip()

config = get_config()

log: Logger = get_logger(
    log_name="SourceBridge",
    log_level=config.log_level,
    log_dir=config.data_path / "logs",
)
