from intake.extract.extractor import extract, scan
from intake.extract.rules import Rule, label_has
from intake.forms.answers import decode_answers


def _bag(*entries):
    return decode_answers({str(i): entry for i, entry in enumerate(entries)})


def test_participant_name_and_ndis_number():
    answers = _bag(
        {"text": "NDIS Participant's Full Name", "answer": {"first": "Jessica", "last": "Teasdale"}},
        {"text": "NDIS Participant's NDIS Number", "answer": "431187858"},
    )

    extraction = extract("participant", answers)

    assert extraction.entity_type == "participant"
    assert extraction.record.name == "Jessica Teasdale"
    assert extraction.record.ndis_number == "431187858"
    assert extraction.record.email is None


def test_participant_coordinator_fields_do_not_leak_into_participant_fields():
    answers = _bag(
        {"text": "Support Coordinator Name", "answer": "Carol Coord"},
        {"text": "Support Coordinator Email", "answer": "carol@coord.example"},
        {"text": "Participant Name", "answer": "Pat Smith"},
        {"text": "Email", "answer": "pat@example.com"},
    )

    record = extract("participant", answers).record

    assert record.support_coordinator_name == "Carol Coord"
    assert record.support_coordinator_email == "carol@coord.example"
    assert record.name == "Pat Smith"
    assert record.email == "pat@example.com"


def test_participant_preferences_accumulate_in_order():
    answers = _bag(
        {"text": "Preferred Location", "answer": "Geelong"},
        {"text": "Number of bedrooms", "answer": "2"},
        {"text": "Accessibility requirements", "answer": "Wheelchair access"},
        {"text": "Age", "answer": "34 years"},
        {"text": "Primary disability", "answer": "Cerebral palsy"},
        {"text": "Current housing situation", "answer": "Group home"},
    )

    record = extract("participant", answers).record

    assert record.housing_preferences == [
        "Preferred Location: Geelong",
        "Number of bedrooms: 2",
        "Accessibility requirements: Wheelchair access",
    ]
    assert record.to_fields()["housing_preferences"] == (
        "Preferred Location: Geelong\nNumber of bedrooms: 2\nAccessibility requirements: Wheelchair access"
    )
    assert record.age == 34
    assert record.disability_category == "Cerebral palsy"
    assert record.current_housing_type == "Group home"


def test_first_non_empty_value_wins_per_field():
    answers = _bag(
        {"text": "Email", "answer": ""},
        {"text": "Email address", "answer": "first@example.com"},
        {"text": "Confirm email", "answer": "second@example.com"},
    )

    assert extract("participant", answers).record.email == "first@example.com"


def test_entry_is_consumed_by_first_matching_rule():
    rules = (
        Rule("a", label_has("ndis")),
        Rule("b", label_has("number")),
    )
    fields = scan(_bag({"text": "NDIS Number", "answer": "1"}), rules)
    assert fields == {"a": "1"}


def test_landlord_extraction():
    answers = _bag(
        {"name": "landlordDirectorName", "text": "Landlord/Director Name", "answer": {"first": "Lee", "last": "Owner"}},
        {"text": "Landlord Email", "answer": "lee@owner.example"},
        {"name": "phoneNumber", "text": "Phone Number", "answer": "0400 000 000"},
        {"name": "companyDetails", "text": "Company Details (if required)", "answer": "Owner Holdings"},
        {"name": "abnacnif", "text": "ABN/ACN (if required)", "answer": "51 824 753 556"},
        {
            "name": "addressCompany",
            "text": "Address (Company or Individual)",
            "answer": {"addr_line1": "2 High St", "city": "Hobart", "state": "TAS", "postal": "7000"},
        },
        {"text": "NDIS Provider Registration Number", "answer": "4050012345"},
        {"text": "Are you NDIS registered?", "answer": "Yes"},
        {"text": "Bank Name", "answer": "Example Bank"},
        {"text": "BSB", "answer": "062-000"},
        {"text": "Account Number", "answer": "12345678"},
    )

    record = extract("landlord", answers).record

    assert record.full_name == "Lee Owner"
    assert record.email == "lee@owner.example"
    assert record.phone == "0400 000 000"
    assert record.business_name == "Owner Holdings"
    assert record.abn == "51 824 753 556"
    assert record.address == "2 High St, Hobart, TAS, 7000"
    assert record.registration_number == "4050012345"
    assert record.ndis_registered is True
    assert record.bank_details.bank_name == "Example Bank"
    assert record.bank_details.bsb == "062-000"
    assert record.bank_details.account_number == "12345678"


def test_landlord_without_email_extracts_without_error():
    record = extract("landlord", _bag({"text": "Owner Name", "answer": "Solo Owner"})).record
    assert record.full_name == "Solo Owner"
    assert record.email is None


def test_investor_extraction():
    answers = _bag(
        {"text": "Investor Name", "answer": {"first": "Ivy", "last": "Investor"}},
        {"text": "Email", "answer": "ivy@example.com"},
        {"text": "Mobile", "answer": "0411 111 111"},
        {"text": "Available capital", "answer": "$1,250,000"},
        {"text": "Preferred property type", "answer": "SDA, Residential"},
        {"text": "Investment type", "answer": "NDIS and SDA"},
        {"text": "Preferred locations", "answer": "Perth; Bunbury, Perth"},
        {"text": "Risk appetite", "answer": "Low to moderate"},
    )

    record = extract("investor", answers).record

    assert record.full_name == "Ivy Investor"
    assert record.available_capital == 1250000.0
    assert record.preferred_property_types == ["sda", "residential", "ndis"]
    assert record.preferred_locations == ["Perth", "Bunbury"]
    assert record.risk_tolerance == "low"


def test_unknown_and_inquiry_forms_read_as_participant():
    answers = _bag({"text": "Your Name", "answer": "Quinn"})
    assert extract("inquiry", answers).entity_type == "participant"
    assert extract("inquiry", answers).record.name == "Quinn"


def test_file_answers_are_ignored_by_extraction():
    answers = _bag({"text": "Participant name upload", "type": "control_fileupload", "answer": ["https://f.example/x.pdf"]})
    assert extract("participant", answers).record.name is None
