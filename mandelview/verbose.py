"""Opt-in console diagnostics shared by the viewer modules."""

VERBOSE = False


def set_verbose(enabled):
    global VERBOSE
    VERBOSE = bool(enabled)


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)
