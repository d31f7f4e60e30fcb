"""End-to-end behaviour of `identify` against the in-memory store."""

import pytest

from reconciliation.identity.service import identify
from reconciliation.identity.types import LinkPrecedence
from reconciliation.kernel.errors import InvalidInputError, PersistenceError

pytestmark = pytest.mark.asyncio


def _assert_flat(store):
    by_id = {c.id: c for c in store.all()}
    for contact in by_id.values():
        if contact.linked_id is not None:
            assert by_id[contact.linked_id].linked_id is None


@pytest.mark.parametrize(
    "email,phone_number",
    [(None, None), ("", None), (None, ""), ("", "")],
)
async def test_rejects_observation_without_attributes(contact_store, email, phone_number):
    with pytest.raises(InvalidInputError):
        await identify(contact_store, email=email, phone_number=phone_number)

    assert contact_store.calls == []


async def test_unknown_email_creates_primary(contact_store):
    view = await identify(contact_store, email="a@x.com")

    assert view.emails == ["a@x.com"]
    assert view.phone_numbers == []
    assert view.secondary_contact_ids == []

    created = contact_store.get(view.primary_contact_id)
    assert created.link_precedence == LinkPrecedence.PRIMARY
    assert created.linked_id is None
    assert created.phone_number is None


async def test_new_phone_for_known_email_adds_secondary(contact_store):
    p = contact_store.seed(email="a@x.com", phone_number="111")

    view = await identify(contact_store, email="a@x.com", phone_number="222")

    assert view.primary_contact_id == p.id
    assert view.emails == ["a@x.com"]
    assert view.phone_numbers == ["111", "222"]
    assert len(view.secondary_contact_ids) == 1


async def test_bridging_observation_merges_clusters(contact_store):
    p = contact_store.seed(email="a@x.com")
    q = contact_store.seed(phone_number="222")

    view = await identify(contact_store, email="a@x.com", phone_number="222")

    assert view.primary_contact_id == p.id
    assert view.secondary_contact_ids == [q.id]
    assert contact_store.get(q.id).linked_id == p.id

    again = await identify(contact_store, email="a@x.com", phone_number="222")
    assert again == view
    _assert_flat(contact_store)


async def test_requery_is_idempotent(contact_store):
    first = await identify(contact_store, email="a@x.com", phone_number="111")
    count = len(contact_store.rows)

    second = await identify(contact_store, email="a@x.com", phone_number="111")
    third = await identify(contact_store, email="a@x.com", phone_number="111")

    assert len(contact_store.rows) == count
    assert first == second == third


async def test_single_field_lookups_return_whole_cluster(contact_store):
    await identify(contact_store, email="lorraine@hillvalley.edu", phone_number="123456")
    await identify(contact_store, email="mcfly@hillvalley.edu", phone_number="123456")

    by_phone = await identify(contact_store, phone_number="123456")
    by_email = await identify(contact_store, email="mcfly@hillvalley.edu")

    assert by_phone == by_email
    assert by_phone.emails == ["lorraine@hillvalley.edu", "mcfly@hillvalley.edu"]
    assert by_phone.phone_numbers == ["123456"]
    assert len(contact_store.rows) == 2


async def test_sequence_of_observations_stays_flat(contact_store):
    observations = [
        ("a@x.com", "1"),
        ("b@x.com", "2"),
        ("c@x.com", "3"),
        ("a@x.com", "2"),
        ("d@x.com", "4"),
        ("c@x.com", "4"),
        ("b@x.com", "3"),
        (None, "4"),
        ("e@x.com", "1"),
    ]

    for email, phone_number in observations:
        await identify(contact_store, email=email, phone_number=phone_number)
        _assert_flat(contact_store)

    primaries = [c for c in contact_store.all() if c.link_precedence == LinkPrecedence.PRIMARY]
    assert [p.email for p in primaries] == ["a@x.com"]

    view = await identify(contact_store, email="e@x.com")
    assert view.primary_contact_id == primaries[0].id
    assert view.emails == ["a@x.com", "b@x.com", "c@x.com", "d@x.com", "e@x.com"]
    assert view.phone_numbers == ["1", "2", "3", "4"]


async def test_duplicate_legacy_emails_are_shown_once(contact_store):
    p = contact_store.seed(email="a@x.com", phone_number="111")
    for phone_number in ("222", "333"):
        contact_store.seed(
            email="dup@x.com",
            phone_number=phone_number,
            linked_id=p.id,
            precedence=LinkPrecedence.SECONDARY,
        )

    view = await identify(contact_store, phone_number="111")

    assert view.emails.count("dup@x.com") == 1
    assert len(view.secondary_contact_ids) == 2


async def test_store_errors_propagate_unchanged(contact_store):
    contact_store.fail_on.add("find_matching")

    with pytest.raises(PersistenceError) as exc_info:
        await identify(contact_store, email="a@x.com")

    assert exc_info.value.code == "persistence.error"
