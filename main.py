"""SourceBridge Main Application."""

import asyncio
import signal
import sys

import uvicorn
from pydantic import ValidationError

from sourcebridge import SOURCEBRIDGE_HEADER, log
from sourcebridge.config.settings import get_config
from sourcebridge.exceptions import UnknownProviderError
from sourcebridge.web.app import create_app
from sourcebridge.web.state import get_app_state


def _setup_signal_handlers(server: uvicorn.Server) -> None:
    """Install SIGINT/SIGTERM handlers that ask the web server to exit."""
    loop = asyncio.get_running_loop()

    def _on_signal(sig):
        name = signal.Signals(sig).name if sig else "UNKNOWN"
        log.info(
            f"SourceBridge: Received {name} signal, initiating graceful shutdown..."
        )
        server.should_exit = True

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: _on_signal(s))
        except NotImplementedError:
            # Fallback for environments that don't support add_signal_handler
            signal.signal(sig, lambda s, f: _on_signal(s))


def validate_configuration() -> bool:
    """Validate the resolver configuration and report the provider line-up.

    Returns:
        bool: True if configuration is valid, False otherwise
    """
    try:
        config = get_config()
        log.info(f"SourceBridge: {config!s}")

        order = get_app_state().ensure_orchestrator().provider_order()
        if not order:
            log.warning(
                "SourceBridge: No configured provider is registered; every "
                "resolution will fail"
            )
        else:
            log.info(f"SourceBridge: Provider order $${order}$$")
        return True

    except ValidationError as e:
        log.error(f"SourceBridge: Configuration validation failed: {e}")
        return False
    except (ImportError, UnknownProviderError) as e:
        log.error(f"SourceBridge: Could not load provider modules: {e}")
        return False
    except (OSError, PermissionError) as e:
        log.error(f"SourceBridge: File system error during configuration: {e}")
        return False


async def run() -> int:
    """Main application entry point.

    Serves the HTTP API until a shutdown signal arrives.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    try:
        log.info("\n" + SOURCEBRIDGE_HEADER)

        if not validate_configuration():
            return 1

        config = get_config()
        app = create_app()
        uv_config = uvicorn.Config(
            app,
            host=config.web.host,
            port=config.web.port,
            log_config=None,
            loop="asyncio",
            proxy_headers=True,
            forwarded_allow_ips="*",
        )
        server = uvicorn.Server(uv_config)
        _setup_signal_handlers(server)

        log.success(
            "SourceBridge: API started at "
            f"\033[92mhttp://{config.web.host}:{config.web.port} "
            "(ctrl+c to stop)\033[0m"
        )
        # Use `_serve()` so uvicorn doesn't install its own signal handlers
        await server._serve()
        log.success("SourceBridge: Application shutdown complete")
    except KeyboardInterrupt:
        log.info("SourceBridge: Keyboard interrupt received, shutting down...")
    except ValidationError as e:
        log.error(f"SourceBridge: Configuration validation error: {e}")
        return 1
    except (OSError, PermissionError) as e:
        log.error(f"SourceBridge: File system error: {e}")
        return 1
    except asyncio.CancelledError:
        log.info("SourceBridge: Application cancelled")
        return 0
    except Exception as e:
        log.error(f"SourceBridge: Unexpected application error: {e}", exc_info=True)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Initializes the application and runs the main event loop.

    Args:
        argv (list[str] | None): Command-line arguments (unused).

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    try:
        return asyncio.run(run())
    except KeyboardInterrupt:
        log.info("SourceBridge: Application interrupted")
        return 0
    except Exception as e:
        log.error(f"SourceBridge: Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
