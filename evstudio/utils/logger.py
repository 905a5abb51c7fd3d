import logging
import sys

def setup_logger(name="EvStudio", level=logging.INFO):
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Re-running setup must not duplicate console output
    if any(getattr(h, "_evstudio_console", False) for h in logger.handlers):
        return logger

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(formatter)
    ch._evstudio_console = True
    
    logger.addHandler(ch)
    
    return logger
