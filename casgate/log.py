import logging

log = logging.getLogger("casgate")
