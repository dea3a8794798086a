"""
Browser Lifecycle Bridge

Streamlit runs on the server and never sees page visibility or focus.
LIFECYCLE_SCRIPT is injected into the page (through a zero-height
component iframe) and reloads the app with ``?signal=<name>`` when a
lock trigger fires:

- visibilitychange to hidden  -> visibility_hidden
- window blur                 -> focus_lost
- pageshow from bfcache       -> page_restored

The listeners stay attached for the life of the page; only the reload
itself is guarded so it runs once. A blur where focus only moved into one of
the app's own component iframes is not focus loss and is ignored
(the page document still reports hasFocus()).

pagehide is not bridged: a page being torn down cannot deliver a
signal, and the next load starts locked anyway when a PIN exists.
"""

from typing import Optional

from budget_vault.models.security import LifecycleSignal


SIGNAL_PARAM = "signal"

EMITTED_SIGNALS = (
    LifecycleSignal.VISIBILITY_HIDDEN,
    LifecycleSignal.FOCUS_LOST,
    LifecycleSignal.PAGE_RESTORED,
)

LIFECYCLE_SCRIPT = """
<script>
const parentWindow = window.parent;
const parentDocument = parentWindow.document;
let relocking = false;

function relock(signal) {
    if (relocking) return;
    relocking = true;
    const url = new URL(parentWindow.location.href);
    url.searchParams.set("%(param)s", signal);
    parentWindow.location.replace(url.toString());
}

parentDocument.addEventListener("visibilitychange", () => {
    if (parentDocument.visibilityState === "hidden") relock("%(hidden)s");
});

parentWindow.addEventListener("blur", () => {
    // hasFocus() stays true while focus is inside one of our iframes
    setTimeout(() => {
        if (!parentDocument.hasFocus()) relock("%(blur)s");
    }, 0);
});

parentWindow.addEventListener("pageshow", (event) => {
    if (event.persisted) relock("%(restored)s");
});
</script>
""" % {
    "param": SIGNAL_PARAM,
    "hidden": LifecycleSignal.VISIBILITY_HIDDEN.value,
    "blur": LifecycleSignal.FOCUS_LOST.value,
    "restored": LifecycleSignal.PAGE_RESTORED.value,
}


def parse_signal(value: Optional[str]) -> Optional[LifecycleSignal]:
    """The signal named by a query param value, or None for anything else."""
    if not value:
        return None
    try:
        return LifecycleSignal(value)
    except ValueError:
        return None
