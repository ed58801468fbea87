from jobhunt.matcher import ApplicationMatcher, normalize_company

from conftest import make_app

def test_exact_match_is_case_insensitive():
    matcher = ApplicationMatcher([make_app("1", "ACME Corp")])
    assert matcher.match("acme corp") == "1"

def test_stored_name_contained_in_candidate():
    matcher = ApplicationMatcher([make_app("1", "Acme")])
    assert matcher.match("Acme Corp") == "1"

def test_candidate_contained_in_stored_name():
    matcher = ApplicationMatcher([make_app("1", "Acme Corp")])
    assert matcher.match("Acme") == "1"

def test_exact_beats_earlier_substring():
    matcher = ApplicationMatcher([make_app("1", "Acme Corporation"), make_app("2", "Acme")])
    assert matcher.match("acme") == "2"

def test_punctuation_ignored():
    matcher = ApplicationMatcher([make_app("1", "AT&T")])
    assert matcher.match("ATT Inc.") == "1"

def test_no_match():
    matcher = ApplicationMatcher([make_app("1", "Acme")])
    assert matcher.match("Globex") is None
    assert matcher.match(None) is None

def test_blank_names_never_match():
    matcher = ApplicationMatcher([make_app("1", "  ")])
    assert matcher.match("Acme") is None
    assert matcher.match("!!!") is None

def test_for_owner_reads_only_owner_applications(store):
    store.applications["other"] = make_app("other", "Globex", owner="owner-2")
    matcher = ApplicationMatcher.for_owner(store, "owner-1")
    assert matcher.match("Globex") is None

def test_normalize():
    assert normalize_company("Hewlett-Packard, Inc.") == "hewlettpackardinc"
