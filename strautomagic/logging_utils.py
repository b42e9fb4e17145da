import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())
    # request lines from httpx would leak the OWM appid
    logging.getLogger("httpx").setLevel(logging.WARNING)
