import logging

##
# Create the main logger
#
# Do NOT touch the root logger -- not to break basicConfig() etc
#
log = logging.getLogger('iplink')
log.setLevel(0)
log.addHandler(logging.NullHandler())
