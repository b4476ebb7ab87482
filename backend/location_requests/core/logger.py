import logging
import os
from logging.handlers import RotatingFileHandler
from location_requests.core.config import settings

class LoggerConfig:
    """
    Logger for the location request core.
    Every record goes to a rotating file under LOG_DIRECTORY and to the console.
    """
    def __init__(
        self, level=20, logger_name="LOCATOR", log_directory="logs", log_file="locator.log"
    ):
        try:
            self.logger_name = logger_name
            self.log_directory = os.path.abspath(log_directory)
            self.log_file_path = os.path.join(self.log_directory, log_file)
            self.level = level
            self.log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

            self.logger = logging.getLogger(self.logger_name)
            self.setup_logger()
        except Exception as e:
            print(f"Failed to initialize locator logger: {str(e)}")

    def setup_logger(self):
        try:
            os.makedirs(self.log_directory, exist_ok=True)
            formatter = logging.Formatter(self.log_format)

            # Request traffic can be chatty, keep at most 5 x 5MB
            file_handler = RotatingFileHandler(
                self.log_file_path, backupCount=5, maxBytes=1024 * 1024 * 5, encoding="utf-8"
            )
            console_handler = logging.StreamHandler()

            for handler in (file_handler, console_handler):
                handler.setLevel(self.level)
                handler.setFormatter(formatter)

            # Re-importing the module must not double the output
            if not self.logger.handlers:
                self.logger.addHandler(file_handler)
                self.logger.addHandler(console_handler)

            self.logger.setLevel(self.level)
            self.logger.propagate = False

        except Exception as e:
            print(f"Failed to setup locator log handlers: {str(e)}")

    def log(self, level: int, message: str, extra: dict = None):
        """Log a message, appending `extra` as key/value context."""
        if extra:
            message = f"{message} | {extra}"
        self.logger.log(level, message)

    def request_log(self, level: int, request, message: str):
        """Log a message tagged with the short identity of a request."""
        self.logger.log(level, f"[{type(request).__name__}:{request.identifier[:8]}] {message}")

# Initialize Logger
logs = LoggerConfig(
    level=settings.LOGGER,
    logger_name="LOCATOR",
    log_directory=settings.LOG_DIRECTORY,
    log_file="locator.log"
)
