import logging
import logging.handlers
import colorlog

PACKAGE_LOGGER = 'veeam_agent_updater'


class SafeLogger:
    """Console (coloured) plus append-only file logging for one update run"""

    def __init__(self, name=PACKAGE_LOGGER, log_level=logging.DEBUG, log_file='veeam_agent_update.log',
                 console=True):
        self.name = name
        self.log_level = log_level
        self.log_file = log_file
        self.console = console
        self.file_handler = None
        self.setup_logger()

    def setup_logger(self):
        formatter = colorlog.ColoredFormatter(
            '%(asctime)s | %(log_color)s%(levelname)-8s | %(name)-15s | %(message)s%(reset)s',
            datefmt='%H:%M:%S',
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'bold_red',
            }
        )

        # Open the file first so a bad log path leaves the logger untouched
        self.file_handler = logging.handlers.RotatingFileHandler(
            self.log_file,
            mode='a',
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        self.file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)-15s | %(message)s'
        ))
        self.file_handler.setLevel(self.log_level)

        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(self.log_level)
        self.logger.propagate = False

        if self.console:
            console_handler = colorlog.StreamHandler()
            console_handler.setFormatter(formatter)
            console_handler.setLevel(self.log_level)
            self.logger.addHandler(console_handler)
        self.logger.addHandler(self.file_handler)

    def start_run(self):
        """Separate this run from the previous one in the log file by a blank line"""
        stream = self.file_handler.stream
        if stream.tell() > 0:
            stream.write('\n')
            stream.flush()

    def close(self):
        for handler in list(self.logger.handlers):
            handler.flush()
            handler.close()
            self.logger.removeHandler(handler)
