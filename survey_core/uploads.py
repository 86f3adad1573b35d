from __future__ import annotations

from typing import Any, MutableMapping, Optional

LAST_UPLOAD_KEY = "_last_upload_id"


def claim_upload(state: MutableMapping[str, Any], file_id: Optional[str]) -> bool:
    """True the first time an upload id is seen; an emptied uploader (None) resets the guard.

    Streamlit reruns the script with the same uploaded file still attached, so
    the import must run once per upload, not once per rerun.
    """
    if file_id is None:
        state.pop(LAST_UPLOAD_KEY, None)
        return False
    if state.get(LAST_UPLOAD_KEY) == file_id:
        return False
    state[LAST_UPLOAD_KEY] = file_id
    return True
