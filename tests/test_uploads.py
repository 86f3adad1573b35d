from survey_core.uploads import LAST_UPLOAD_KEY, claim_upload


def test_same_upload_is_claimed_once():
    state = {}
    assert claim_upload(state, "upload-1") is True
    assert claim_upload(state, "upload-1") is False
    assert state[LAST_UPLOAD_KEY] == "upload-1"


def test_reuploading_same_file_after_clearing_imports_again():
    state = {}
    assert claim_upload(state, "upload-1") is True
    assert claim_upload(state, None) is False
    assert LAST_UPLOAD_KEY not in state
    assert claim_upload(state, "upload-2") is True


def test_new_upload_id_is_claimed_without_clearing():
    state = {}
    claim_upload(state, "upload-1")
    assert claim_upload(state, "upload-2") is True
