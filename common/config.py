from pydantic_settings import BaseSettings


class GatewaySettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    max_sessions: int = 10

    model_config = {"env_prefix": "GATEWAY_"}


class RecognitionSettings(BaseSettings):
    # Empty URL means no recognizer is available on this host.
    ws_url: str = ""
    language: str = "ja-JP"
    continuous: bool = True
    interim_results: bool = True
    max_alternatives: int = 1
    open_timeout_s: float = 10.0

    model_config = {"env_prefix": "RECOGNITION_"}
