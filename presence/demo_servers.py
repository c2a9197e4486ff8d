"""
The two demo servers as standalone apps, each with its own state:

    uvicorn presence.demo_servers:handler_app --port 4000
    uvicorn presence.demo_servers:roster_app --port 3000
"""
import sys

from fastapi import FastAPI

from presence.routes.demo import MockRoster, handler_router, roster_router


def create_handler_app() -> FastAPI:
    app = FastAPI(title="Presence+ attendance handler")
    app.include_router(handler_router)
    return app


def create_roster_app(students=None) -> FastAPI:
    app = FastAPI(title="Presence+ roster")
    app.state.roster = MockRoster(students)
    app.include_router(roster_router)
    return app


handler_app = create_handler_app()
roster_app = create_roster_app()


def main(argv=None):
    import uvicorn

    argv = sys.argv[1:] if argv is None else argv
    which = argv[0] if argv else "handler"
    if which == "handler":
        uvicorn.run(handler_app, host="0.0.0.0", port=4000)
    elif which == "roster":
        uvicorn.run(roster_app, host="0.0.0.0", port=3000)
    else:
        raise SystemExit(f"Unknown demo server '{which}' (expected 'handler' or 'roster')")


if __name__ == "__main__":
    main()
