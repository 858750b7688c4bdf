"""
A simple CLI for setting up the database, running a development server and
issuing access tokens.
"""

import os
import sys

import uvicorn


def run_server(**kwargs):
    for k, v in kwargs.items():
        os.environ[k] = v

    uvicorn.run("groupmatch.api.app:app", host="0.0.0.0")


def main():
    try:
        command = sys.argv[1]
    except IndexError:
        command = None

    if command == "run" and sys.argv[2:3] == ["dev"]:
        run_server(
            GROUPMATCH_DATABASE_TYPE="sqlite",
            GROUPMATCH_DATABASE_DB="groupmatch-dev.db",
            GROUPMATCH_CREATE_TABLES_ON_STARTUP="True",
        )
    elif command == "run" and sys.argv[2:3] == ["prod"]:
        run_server()
    elif command == "setup":
        from groupmatch.config.settings import Settings

        Settings().sync_manager().create_all()
        print("Setup complete, tables created")
    elif command == "token" and len(sys.argv) == 3:
        from groupmatch.config.settings import Settings
        from groupmatch.core.tokens import build_access_token_payload, sign_payload
        from groupmatch.core.uuid import parse_uuid

        settings = Settings()
        print(
            sign_payload(
                payload=build_access_token_payload(
                    user_id=parse_uuid(sys.argv[2]),
                    validity=settings.access_token_expiry,
                ),
                secret=settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
            )
        )
    else:
        print(
            "Supported commands are groupmatch run dev, groupmatch run prod, "
            "groupmatch setup, or groupmatch token {user_id}"
        )
        exit(1)
