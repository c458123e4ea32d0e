"""Per entity type rule tables.

Rule order is part of the contract: an entry is consumed by the first rule
whose predicate it satisfies, so narrower rules (coordinator email) must sit
above broader ones (any email).
"""

from __future__ import annotations

from intake.extract.rules import (
    Rule,
    all_of,
    any_of,
    as_amount,
    as_flag,
    as_int,
    as_labelled,
    as_list,
    as_property_types,
    as_risk_level,
    label_has,
    label_is,
    label_lacks,
    label_word,
    name_has,
    name_is,
)

PARTICIPANT_RULES: tuple[Rule, ...] = (
    Rule("support_coordinator_email", label_has("coordinator", "email")),
    Rule("support_coordinator_name", label_has("coordinator", "name")),
    Rule("ndis_number", any_of(label_has("ndis", "number"), name_is("ndisnumber", "ndis_number"))),
    Rule("email", any_of(label_has("email"), name_has("email"))),
    Rule("date_of_birth", any_of(label_has("date of birth"), label_word("dob"), name_is("dateofbirth"))),
    Rule("age", label_word("age"), as_int),
    Rule("disability_category", label_has("disability")),
    Rule("support_level", any_of(label_has("support", "level"), label_has("support", "needs"))),
    Rule(
        "current_housing_type",
        all_of(
            label_has("current"),
            any_of(label_has("housing"), label_has("accommodation"), label_has("living")),
        ),
    ),
    Rule(
        "housing_preferences",
        any_of(
            label_has("location"),
            label_has("suburb"),
            label_has("property", "type"),
            label_has("bedroom"),
            label_has("accessib"),
            label_has("budget"),
            all_of(label_has("prefer"), label_lacks("name", "contact")),
        ),
        as_labelled,
        accumulate=True,
    ),
    Rule(
        "name",
        any_of(
            label_has("participant", "name"),
            label_has("applicant", "name"),
            label_has("tenant", "name"),
            label_has("full name"),
            label_is("name", "your name"),
            name_is("name", "fullname", "participantname"),
        ),
    ),
)

LANDLORD_RULES: tuple[Rule, ...] = (
    Rule(
        "full_name",
        any_of(
            name_is("landlorddirectorname", "individualor"),
            label_has("landlord", "name"),
            label_has("owner", "name"),
            label_has("director", "name"),
            label_has("representative", "name"),
            label_is("name", "full name", "your name"),
            name_is("name", "fullname"),
        ),
    ),
    Rule("email", any_of(label_has("email"), name_has("email"))),
    Rule(
        "phone",
        any_of(
            name_is("phonenumber"),
            label_has("phone"),
            label_has("mobile"),
            label_has("contact", "number"),
        ),
    ),
    Rule(
        "business_name",
        any_of(
            name_is("companydetails"),
            label_has("company", "details"),
            label_has("business", "name"),
            label_has("company", "name"),
        ),
    ),
    Rule(
        "abn",
        any_of(
            name_is("abnacnif"),
            label_has("abn"),
            label_has("acn"),
            label_has("australian business number"),
        ),
    ),
    Rule(
        "address",
        any_of(
            name_is("addresscompany", "sdaproperty"),
            all_of(label_has("address"), label_lacks("email")),
            label_has("location"),
        ),
    ),
    Rule("registration_expiry", label_has("registration", "expiry")),
    Rule(
        "registration_number",
        any_of(label_has("registration", "number"), label_has("provider", "number")),
    ),
    Rule(
        "ndis_registered",
        any_of(label_has("ndis", "registered"), label_has("ndis", "provider")),
        as_flag,
    ),
    Rule("bank_name", label_has("bank", "name")),
    Rule("bank_bsb", label_has("bsb")),
    Rule("bank_account_number", all_of(label_has("account", "number"), label_lacks("abn"))),
)

INVESTOR_RULES: tuple[Rule, ...] = (
    Rule(
        "full_name",
        any_of(
            label_has("investor", "name"),
            label_has("your", "name"),
            name_has("investor", "name"),
            label_is("name", "full name"),
            name_is("name", "fullname"),
        ),
    ),
    Rule("email", any_of(label_has("email"), name_has("email"))),
    Rule("phone", any_of(label_has("phone"), label_has("mobile"), name_has("phone"))),
    Rule(
        "available_capital",
        any_of(
            label_has("capital"),
            label_has("investment", "amount"),
            label_has("budget"),
            name_has("capital"),
        ),
        as_amount,
    ),
    Rule(
        "preferred_property_types",
        any_of(label_has("property", "type"), label_has("investment", "type")),
        as_property_types,
        accumulate=True,
    ),
    Rule(
        "preferred_locations",
        any_of(label_has("location"), label_has("area"), label_has("suburb"), label_has("region")),
        as_list,
        accumulate=True,
    ),
    Rule("risk_tolerance", any_of(label_has("risk"), name_has("risk")), as_risk_level),
)
