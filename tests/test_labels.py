import pytest

from jobhunt.errors import LabelConfigurationError
from jobhunt.labels import (
    LabelScheme, build_label_query, gmail_search_term, label_matches, resolve_labels, status_for_label,
)
from jobhunt.models import ApplicationStatus, Label

def test_nested_label_resolves_like_plain_label():
    plain = resolve_labels([Label("1", "JH25 - Offer")], ["JH25 - Offer"])
    nested = resolve_labels([Label("2", "Inbox/JH25 - Offer")], ["JH25 - Offer"])
    assert plain == {"JH25 - Offer": "1"}
    assert nested == {"JH25 - Offer": "2"}

def test_first_matching_label_wins():
    labels = [Label("a", "Old/JH25 - Offer"), Label("b", "JH25 - Offer")]
    assert resolve_labels(labels, ["JH25 - Offer"]) == {"JH25 - Offer": "a"}

def test_unresolved_names_are_left_out():
    resolved = resolve_labels([Label("1", "JH25 - Applied")], ["JH25 - Applied", "JH25 - Offer"])
    assert resolved == {"JH25 - Applied": "1"}

def test_zero_labels_is_configuration_error():
    labels = [Label(str(i), f"Label {i}") for i in range(60)]
    with pytest.raises(LabelConfigurationError) as exc:
        resolve_labels(labels, LabelScheme().expected_names())
    assert len(exc.value.expected) == 9
    assert len(exc.value.available) == 50
    assert exc.value.details["availableLabels"][0] == "Label 0"

def test_label_matches_suffix_only():
    assert label_matches("Jobs/JH25 - Applied", "JH25 - Applied")
    assert not label_matches("JH25 - Applied/Archive", "JH25 - Applied")

def test_scheme_from_config():
    scheme = LabelScheme.from_config({"status_labels": {"Offer!": "offer"}, "networking_label": "Net"})
    assert scheme.expected_names() == ["Offer!", "Net"]
    assert status_for_label(scheme, "X/Offer!") == ("Offer!", ApplicationStatus.OFFER)

def test_default_scheme_has_all_statuses():
    assert set(LabelScheme().status_labels.values()) == set(ApplicationStatus)

def test_search_query():
    catalog = {"1": "Inbox/JH25 - Offer", "2": "JH25-Rejected"}
    assert gmail_search_term("Inbox/JH25 - Offer") == "label:inbox-jh25---offer"
    assert build_label_query(["1", "2", "missing"], catalog) == "{label:inbox-jh25---offer label:jh25-rejected}"
