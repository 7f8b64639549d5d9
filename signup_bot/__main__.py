"""
Package entry point: ``python -m signup_bot``.

Falls back to an emergency health server when the bot cannot start, so the
failure stays visible to health checks.
"""
import asyncio
import os
import sys
import traceback


def create_emergency_app(error_message: str):
    """A minimal FastAPI app that reports the startup error."""
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse

    app = FastAPI(title="Signup Bot - Emergency Mode")

    @app.get("/health")
    async def health():
        return JSONResponse(
            status_code=503,
            content={
                "status": "emergency",
                "error": error_message,
                "env": {
                    "DISCORD_TOKEN_SET": bool(os.environ.get("DISCORD_TOKEN")),
                    "MAIN_GUILD_ID_SET": bool(os.environ.get("MAIN_GUILD_ID")),
                }
            }
        )

    return app


def run_emergency_server(error_message: str) -> None:
    import uvicorn

    host = os.environ.get("HEALTH_HOST", "0.0.0.0")
    port = int(os.environ.get("HEALTH_PORT", "5000"))
    print(f"EMERGENCY: Starting fallback server on {host}:{port}", flush=True, file=sys.stderr)
    uvicorn.run(create_emergency_app(error_message), host=host, port=port, log_level="info")


def run_main() -> None:
    try:
        from .main import main
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        error_message = f"{type(e).__name__}: {e}"
        print(f"FATAL: {error_message}", flush=True, file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        if os.environ.get("HEALTH_ENABLED", "true").lower() in ("1", "true", "yes"):
            run_emergency_server(error_message)
        sys.exit(1)


if __name__ == "__main__":
    run_main()
