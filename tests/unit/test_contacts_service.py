import pytest

from backend.contacts import service as contacts_service
from backend.utils.errors import InternalError, ValidationError

FORM = dict(first_name="Sara", last_name="Khan", email="sara@example.com", subject="Sizing", message="Do you stock 44?")


def test_submit_contact_persists(store):
    result = contacts_service.submit_contact(**FORM, phone=" 0300 ")

    assert result["message"] == "Contact message submitted successfully"
    [row] = store.rows("contacts")
    assert row["phone"] == "0300"
    assert row["created_at"]
    assert result["contact"]["id"] == row["id"]


@pytest.mark.parametrize("field", ["first_name", "email", "message"])
def test_submit_contact_requires_fields(store, field):
    with pytest.raises(ValidationError) as exc:
        contacts_service.submit_contact(**{**FORM, field: "   "})
    assert exc.value.message == "All required fields must be provided"
    assert store.rows("contacts") == []


def test_submit_contact_store_failure(store):
    store.fail_on.add(("contacts", "insert"))
    with pytest.raises(InternalError):
        contacts_service.submit_contact(**FORM)


def test_list_contacts_newest_first(store):
    contacts_service.submit_contact(**{**FORM, "subject": "first"})
    contacts_service.submit_contact(**{**FORM, "subject": "second"})
    assert [c["subject"] for c in contacts_service.list_contacts()["contacts"]] == ["second", "first"]
