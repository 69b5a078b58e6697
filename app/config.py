from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    backend_provider: str = 'local'

    supabase_url: str = ''
    supabase_anon_key: str = ''
    supabase_timeout_seconds: int = 30

    database_url: str = 'sqlite:///./shop_portal.db'
    local_require_email_confirmation: bool = False

    session_cookie_name: str = 'shop_portal_view'
    session_ttl_minutes: int = 30
    session_cookie_secure: bool = False
    session_cookie_samesite: str = 'lax'

    credential_length: int = 25
    log_level: str = 'INFO'

    @property
    def database_url_normalized(self) -> str:
        url = self.database_url.strip()
        if url.startswith('postgres://'):
            return 'postgresql+psycopg://' + url[len('postgres://') :]
        if url.startswith('postgresql://'):
            return 'postgresql+psycopg://' + url[len('postgresql://') :]
        return url


settings = Settings()
