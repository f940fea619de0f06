import logging
from logging import StreamHandler, Formatter


def setup_gridder_logging(level=logging.INFO, format_string=' -- %(name)s: %(message)s'):
    """Setup logging for the entire gridder package"""
    # Configure the parent 'gridder' logger
    gridder_logger = logging.getLogger('gpsgrid')

    # Avoid duplicate handlers
    if not gridder_logger.handlers:
        handler = StreamHandler()
        gridder_logger.addHandler(handler)
        # Prevent propagation to root logger to avoid duplicate messages
        gridder_logger.propagate = False

    for handler in gridder_logger.handlers:
        if level == logging.INFO:
            handler.setFormatter(Formatter(' -- %(message)s'))
        else:
            handler.setFormatter(Formatter(format_string))

    gridder_logger.setLevel(level)

    return gridder_logger
