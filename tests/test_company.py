from jobhunt import company
from jobhunt.matcher import ApplicationMatcher

from conftest import make_app

def test_extract_company_from_subject():
    subj = "Update on your application at Acme Corp"
    assert company.extract_company(subj, "", "") == "Acme Corp"

def test_subject_for_phrase():
    assert company.extract_company("Interview invitation for Globex", "", "") == "Globex"

def test_subject_needs_capitalized_company():
    assert company.from_subject("Thanks for applying", "", "") is None

def test_subject_stopword_rejected():
    assert company.from_subject("Welcome at The", "", "") is None

def test_ats_noreply_sender_yields_nothing():
    assert company.extract_company("Thanks for applying", "", "noreply@greenhouse.io") is None

def test_generic_local_part_falls_through_to_domain():
    assert company.extract_company("Your application", "Careers", "careers@globex.com") == "Globex"

def test_local_part_title_cased():
    assert company.extract_company("Quick chat", "", "initech@mail.example.com") == "Initech"

def test_short_local_part_rejected():
    assert company.from_sender_local_part("", "", "hr@acme.com") is None

def test_freemail_domain_rejected():
    assert company.from_sender_domain("", "", "jane@gmail.com") is None

def test_display_name_with_company():
    assert company.extract_company("Hi", "Jane Doe @ Hooli", "noreply@workday.com") == "Hooli"

def test_custom_heuristic_order():
    only_domain = (company.from_sender_domain,)
    assert company.extract_company("Offer at Acme", "", "talent@initech.com", only_domain) == "Initech"

def test_subject_capture_runs_through_lowercase_words():
    # the capture starts at the first capitalized word after "for" and keeps going
    assert company.from_subject("Interview for Backend Role at Stripe", "", "") == "Backend Role at Stripe"

def test_long_subject_capture_still_matches_by_containment():
    matcher = ApplicationMatcher([make_app("app-stripe", "Stripe"), make_app("app-acme", "Acme")])
    candidate = company.extract_company("Interview for Backend Role at Stripe", "", "")
    assert matcher.match(candidate) == "app-stripe"
