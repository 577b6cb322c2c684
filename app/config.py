from dynaconf import Dynaconf, Validator

settings = Dynaconf(
    settings_files=["settings.toml", ".secrets.toml"],
    environments=True,
    env_switcher="ENV_FOR_DYNACONF",
    envvar_prefix="TRACKER",
    load_dotenv=True,
    validators=[
        Validator("DATABASE_URL", default="sqlite+aiosqlite:///./tracker.db"),
        Validator("FETCH_TIMEOUT", default=15, is_type_of=int, gte=1),
        Validator("FETCH_RETRIES", default=0, is_type_of=int, gte=0),
        Validator("MIN_HTML_LENGTH", default=100, is_type_of=int, gte=1),
        Validator("REFRESH_CONCURRENCY", default=4, is_type_of=int, gte=1),
        Validator("REFRESH_INTERVAL_MINUTES", default=0, is_type_of=int, gte=0),
        Validator("VAPID_PRIVATE_KEY", default=""),
        Validator("VAPID_PRIVATE_KEY_PATH", default=""),
        Validator("VAPID_PUBLIC_KEY", default=""),
        Validator("VAPID_SUBJECT", default="mailto:noreply@socialtracker.app"),
        Validator("PUSH_TTL", default=86400, is_type_of=int),
        Validator("PUSH_ENCRYPT", default=True, is_type_of=bool),
        Validator("NOTIFY_ON_CHANGE", default=False, is_type_of=bool),
    ],
)
