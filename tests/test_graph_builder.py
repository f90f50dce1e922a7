from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from recordmap.config import MapperConfig
from recordmap.engine import RecordMapper
from recordmap.errors import ConversionIssuesError
from recordmap.models.report import IssueKind

from sample_models import (
    Account,
    Address,
    Bag,
    Cat,
    Color,
    Counter,
    Customer,
    Dog,
    Escaped,
    Fickle,
    FrozenPoint,
    Holder,
    Item,
    Order,
    Person,
    Plain,
    Point,
    Priority,
    Schedule,
    Temperature,
    Zoo,
)


def _mapper() -> RecordMapper:
    return RecordMapper(config=MapperConfig())


def test_build_person_from_mapping():
    person = _mapper().from_dict(
        {
            "name": "Ann",
            "age": 30,
            "address": {"street": "Main 1", "city": "X"},
            "tags": ["a", "b"],
            "created": "2024-01-02T03:04:05+0000",
        },
        Person,
    )
    assert isinstance(person, Person)
    assert person.name == "Ann"
    assert person.age == 30
    assert isinstance(person.address, Address)
    assert person.address.city == "X"
    assert person.tags == ["a", "b"]
    assert person.created == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_build_by_dotted_type_name():
    person = _mapper().from_dict({"name": "Ann"}, "sample_models.Person")
    assert isinstance(person, Person) and person.name == "Ann"


def test_unknown_type_returns_none_with_issue():
    result, report = _mapper().from_dict_with_report({"name": "Ann"}, "sample_models.Nope")
    assert result is None
    assert report.has(IssueKind.TYPE_RESOLUTION)


def test_existing_sub_object_identity_reused():
    person = Person(name="Ann", address=Address(city="X"))
    address = person.address
    _mapper().populate(person, {"address": {"city": "Y"}})
    assert person.address is address
    assert address.city == "Y"


def test_singleton_collection_unwrapped():
    bag = _mapper().from_dict({"items": {"a": [1, 2, 3]}}, Bag)
    assert bag.items == [1, 2, 3]


def test_single_object_wrapped_into_collection():
    order = _mapper().from_dict({"lines": {"sku": "x", "quantity": 2}}, Order)
    assert len(order.lines) == 1
    assert order.lines[0].sku == "x"
    assert order.lines[0].quantity == 2


def test_collection_of_records_and_leaf_conversion():
    order = _mapper().from_dict(
        {
            "number": 17,
            "lines": [{"sku": "x", "quantity": "2", "price": "1.5"}, {"sku": "y"}],
            "priority": 2,
            "color": "green",
            "notes": {"gift": "yes"},
            "total": "4.50",
        },
        Order,
    )
    assert order.number == "17"
    assert [line.sku for line in order.lines] == ["x", "y"]
    assert order.lines[0].quantity == 2
    assert order.lines[0].price == 1.5
    assert order.priority is Priority.HIGH
    assert order.color is Color.GREEN
    assert order.notes == {"gift": "yes"}
    assert order.total == Decimal("4.50")


def test_mapping_values_converted():
    bag = _mapper().from_dict({"labels": {"a": "1", "b": 2}}, Bag)
    assert bag.labels == {"a": 1, "b": 2}


def test_polymorphic_elements():
    zoo = _mapper().from_dict(
        {
            "name": "City",
            "animals": [
                {"kind": "dog", "name": "Rex", "barks": True},
                {"kind": "cat", "name": "Tom", "lives": "7"},
                {"kind": "bird", "name": "Tweety"},
            ],
        },
        Zoo,
    )
    dog, cat, other = zoo.animals
    assert type(dog) is Dog and dog.barks is True
    assert type(cat) is Cat and cat.lives == 7
    assert other.name == "Tweety" and not isinstance(other, (Dog, Cat))


def test_snake_case_document_mapped_to_camel_fields():
    account = _mapper().from_dict(
        {"user_name": "ann", "email_address": "a@x", "login_count": "3"}, Account
    )
    assert account.userName == "ann"
    assert account.emailAddress == "a@x"
    assert account.loginCount == 3


def test_reserved_word_fields():
    escaped = _mapper().from_dict({"class": "A", "type": "B", "plain": "C"}, Escaped)
    assert (escaped._class, escaped._type, escaped.plain) == ("A", "B", "C")


def test_custom_keys_exclusion_and_unknown_keys():
    customer = _mapper().from_dict(
        {"id": "9", "displayName": "Bob", "secret": "leak", "unrelated": 1}, Customer
    )
    assert customer.customer_id == 9
    assert customer.display_name == "Bob"
    assert customer.secret == ""


def test_custom_setter_receives_raw_value():
    temp = _mapper().from_dict({"celsius": "18.5C"}, Temperature)
    assert temp.celsius == 18.5


def test_numeric_parse_failure_leaves_field_untouched():
    person, report = _mapper().from_dict_with_report({"name": "Ann", "age": "abc"}, Person)
    assert person.name == "Ann"
    assert person.age == 0
    issues = report.of_kind(IssueKind.NUMERIC_PARSE)
    assert len(issues) == 1
    assert issues[0].path == "age"
    assert issues[0].value == "abc"


def test_date_parse_failure_reported():
    person, report = _mapper().from_dict_with_report({"created": "yesterday"}, Person)
    assert person.created is None
    assert report.has(IssueKind.DATE_PARSE)


def test_epoch_numbers_assigned_to_dates():
    schedule = _mapper().from_dict({"starts": 1_700_000_000, "ends": 1_700_000_000_000}, Schedule)
    assert schedule.starts == schedule.ends
    assert schedule.starts.tzinfo is not None


def test_null_only_assigned_to_optional_fields():
    person = _mapper().from_dict({"name": None, "email": None, "address": None}, Person)
    assert person.name == ""
    assert person.email is None
    assert person.address is None

    existing = Person(email="a@x")
    _mapper().populate(existing, {"email": None})
    assert existing.email is None


def test_required_dataclass_fields():
    point = _mapper().from_dict({"x": 1, "y": "2"}, Point)
    assert point == Point(1, 2)


def test_pydantic_model_with_required_fields():
    item = _mapper().from_dict({"name": "bolt", "qty": "3"}, Item)
    assert item.name == "bolt" and item.qty == 3


def test_frozen_dataclass_assignment_reported():
    point, report = _mapper().from_dict_with_report({"x": 1}, FrozenPoint)
    assert point == FrozenPoint(0, 0)
    assert report.has(IssueKind.ASSIGNMENT)


def test_plain_object_fields_from_values():
    plain = _mapper().from_dict({"title": "T", "count": "5"}, Plain)
    assert plain.title == "T"
    assert plain.count == 5


def test_record_field_with_scalar_reported():
    person, report = _mapper().from_dict_with_report({"address": "Main street"}, Person)
    assert person.address is None
    assert report.has(IssueKind.VALUE_COERCION)


def test_bad_collection_element_skipped():
    bag, report = _mapper().from_dict_with_report({"items": [1, "two", 3]}, Bag)
    assert bag.items == [1, 3]
    assert report.issues[0].path == "items[1]"


def test_fractional_number_rejected_for_int_field():
    counter, report = _mapper().from_dict_with_report({"count": "4.5"}, Counter)
    assert counter.count == 0
    assert report.has(IssueKind.NUMERIC_PARSE)
    assert report.issues[0].path == "count"
    assert _mapper().from_dict({"count": 4.0}, Counter).count == 4


def test_raise_for_issues_carries_collected_issues():
    person, report = _mapper().from_dict_with_report({"name": "Ann", "age": "lots"}, Person)
    assert person.name == "Ann"
    with pytest.raises(ConversionIssuesError) as excinfo:
        report.raise_for_issues()
    assert [issue.kind for issue in excinfo.value.issues] == [IssueKind.NUMERIC_PARSE]
    assert excinfo.value.issues[0].path == "age"


def test_clean_report_does_not_raise():
    _, report = _mapper().from_dict_with_report({"name": "Ann"}, Person)
    assert report.ok
    report.raise_for_issues()


def test_failing_refine_type_reported_as_type_resolution():
    result, report = _mapper().from_dict_with_report({"kind": "x"}, Fickle)
    assert result is None
    assert report.has(IssueKind.TYPE_RESOLUTION)
    assert "no variant for 'x'" in report.issues[0].message


def test_failing_nested_constructor_skips_only_that_branch():
    holder, report = _mapper().from_dict_with_report({"name": "n", "fussy": {"x": 1}}, Holder)
    assert holder.name == "n"
    assert holder.fussy is None
    issue = report.of_kind(IssueKind.TYPE_RESOLUTION)[0]
    assert issue.path == "fussy"
    assert "needs a live connection" in issue.message
