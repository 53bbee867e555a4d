"""Textual integration for derivable. Opt-in: requires textual.

Reactions created here only run their effect while the app is running and
not paused, swallow NoMatches from widget queries made against a tree that
is being rebuilt, and marshal effects fired from a foreign thread onto the
app's thread via call_from_thread.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from derivable.reaction import Reaction

logger = logging.getLogger("derivable.textual")

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded reactions during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, effect_fn):
    main = threading.get_ident()

    def safe(value):
        try:
            effect_fn(value)
        except NoMatches:
            logger.debug("widget query found no match; effect skipped")

    def guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(safe, value)
        else:
            safe(value)

    return guarded


def reaction(app, source, effect_fn) -> Reaction:
    """source.reaction() that safely bridges to Textual widgets. Not started."""
    return source.reaction(_guard(app, effect_fn))


def react(app, source, effect_fn) -> Reaction:
    """source.react() that safely bridges to Textual widgets.

    Started and forced immediately; the initial effect is skipped if the app
    is not ready yet.
    """
    return source.react(_guard(app, effect_fn))
