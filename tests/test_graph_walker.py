from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from recordmap.config import MapperConfig
from recordmap.engine import RecordMapper
from recordmap.models.canonical import is_canonical
from recordmap.models.report import IssueKind

from sample_models import (
    Account,
    Address,
    Bag,
    BrokenTeam,
    Color,
    Customer,
    Escaped,
    Gauge,
    Line,
    LooseTeam,
    Node,
    Order,
    Person,
    Plain,
    Priority,
    Team,
    Temperature,
)


def _mapper() -> RecordMapper:
    return RecordMapper(config=MapperConfig())


def test_person_to_dict():
    person = Person(
        name="Ann",
        age=30,
        address=Address(street="Main 1", city="X"),
        tags=["a", "b"],
        created=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )
    result = _mapper().to_dict(person)
    assert result == {
        "name": "Ann",
        "age": 30,
        "email": None,
        "address": {"street": "Main 1", "city": "X"},
        "tags": ["a", "b"],
        "created": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    }
    assert is_canonical(result)


def test_naive_datetime_serialized_as_utc():
    person = Person(created=datetime(2024, 1, 2, 3, 4, 5))
    created = _mapper().to_dict(person)["created"]
    assert created.tzinfo is not None
    assert created == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_collection_of_records_and_enums():
    order = Order(
        number="A-1",
        lines=[Line(sku="x", quantity=2, price=1.5), Line(sku="y")],
        priority=Priority.HIGH,
        color=Color.GREEN,
        notes={"gift": "yes"},
        total=Decimal("4.50"),
    )
    result = _mapper().to_dict(order)
    assert result["lines"] == [
        {"sku": "x", "quantity": 2, "price": 1.5},
        {"sku": "y", "quantity": 0, "price": 0.0},
    ]
    assert result["priority"] == 2
    assert result["color"] == "green"
    assert result["notes"] == {"gift": "yes"}
    assert result["total"] == 4.5
    assert is_canonical(result)


def test_cleanup_normalizes_field_names_recursively():
    result = _mapper().to_dict(Account(userName="ann", emailAddress="a@x", loginCount=2), cleanup=True)
    assert result == {"user_name": "ann", "email_address": "a@x", "login_count": 2}


def test_without_cleanup_field_names_are_kept():
    result = _mapper().to_dict(Account(userName="ann"))
    assert "userName" in result


def test_reserved_words_unescaped_in_cleanup():
    result = _mapper().to_dict(Escaped(_class="A", _type="B", plain="C"), cleanup=True)
    assert result == {"class": "A", "type": "B", "plain": "C"}


def test_custom_keys_and_exclusion():
    customer = Customer(customer_id=7, display_name="Ann", secret="hidden")
    assert _mapper().to_dict(customer) == {"id": 7, "displayName": "Ann"}
    # custom keys are never snake-cased
    assert _mapper().to_dict(customer, cleanup=True) == {"id": 7, "displayName": "Ann"}


def test_custom_getter_used():
    assert _mapper().to_dict(Temperature(celsius=21.5)) == {"celsius": "21.5C"}


def test_plain_object_and_dataclass():
    plain = Plain()
    plain.title = "T"
    assert _mapper().to_dict(plain) == {"title": "T", "count": 0, "extra": None}
    assert _mapper().to_dict(Bag(items=[1, 2], labels={"a": 1})) == {
        "items": [1, 2],
        "labels": {"a": 1},
    }


def test_optional_record_collection_uses_convert_array_hook():
    team = Team(members=[Person(name="A"), None, Person(name="B")])
    mapper = _mapper()
    result, report = mapper.to_dict_with_report(team)
    assert [m["name"] for m in result["members"]] == ["A", "B"]
    assert report.ok


def test_missing_convert_array_hook_reported():
    team = LooseTeam(members=[Person(name="A"), None])
    result, report = _mapper().to_dict_with_report(team)
    assert result["members"][0]["name"] == "A"
    assert result["members"][1] is None
    assert report.has(IssueKind.MISSING_ARRAY_CONVERTER)


def test_unknown_value_becomes_null():
    plain = Plain()
    plain.extra = object()
    result, report = _mapper().to_dict_with_report(plain)
    assert result["extra"] is None
    issues = report.of_kind(IssueKind.UNKNOWN_VALUE_KIND)
    assert issues and issues[0].path == "extra"


def test_reference_cycle_serialized_as_null():
    node = Node(label="a")
    node.next = Node(label="b", next=node)
    result, report = _mapper().to_dict_with_report(node)
    assert result["next"]["label"] == "b"
    assert result["next"]["next"] is None
    assert report.has(IssueKind.REFERENCE_CYCLE)
    assert report.for_path("next.next")


def test_issue_paths_include_list_indexes():
    plain = Plain()
    plain.extra = [1, object()]
    _, report = _mapper().to_dict_with_report(plain)
    assert report.issues[0].path == "extra[1]"


def test_failing_custom_getter_only_nulls_its_field():
    result, report = _mapper().to_dict_with_report(Gauge(name="boiler", reading=71.5))
    assert result == {"name": "boiler", "reading": None}
    assert [issue.path for issue in report.of_kind(IssueKind.VALUE_COERCION)] == ["reading"]
    assert "sensor offline" in report.issues[0].message


def test_failing_convert_array_hook_falls_back_to_generic_conversion():
    team = BrokenTeam(members=[Person(name="A"), None])
    result, report = _mapper().to_dict_with_report(team)
    assert result["members"][0]["name"] == "A"
    assert result["members"][1] is None
    assert report.for_path("members")[0].kind == IssueKind.VALUE_COERCION
