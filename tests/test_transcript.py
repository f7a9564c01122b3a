from contextly.models.message import Message
from contextly.models.segments import Segment
from contextly.services.transcript import load_transcript, order_messages


def _texts(messages):
    return [m.content if isinstance(m.content, str) else m.content[0].value for m in messages]


def test_orders_by_timestamp_with_assistant_after_user_on_tie():
    records = [
        {"role": "assistant", "content": "answer", "timeStamp": "2024-05-01T10:00:00Z"},
        {"role": "user", "content": "question", "timeStamp": "2024-05-01T10:00:00Z"},
        {"role": "user", "content": "earlier", "timeStamp": "2024-05-01T09:59:59Z"},
    ]
    assert _texts(load_transcript(records)) == ["earlier", "question", "answer"]


def test_absent_timestamps_tie_break_and_sort_first():
    records = [
        {"role": "user", "content": "timed", "timeStamp": "2024-05-01T08:00:00Z"},
        {"role": "assistant", "content": "a"},
        {"role": "user", "content": "u"},
    ]
    assert _texts(load_transcript(records)) == ["u", "a", "timed"]


def test_naive_and_aware_timestamps_compare():
    msgs = [
        Message(role="user", content="aware", timestamp="2024-05-01T10:00:00+02:00"),
        Message(role="user", content="naive", timestamp="2024-05-01T09:00:00"),
    ]
    assert _texts(order_messages(msgs)) == ["aware", "naive"]


def test_legacy_content_is_normalized_once_at_load():
    [msg] = load_transcript([{"role": "assistant", "content": "see <linkStart>http://a"}])
    assert msg.content == [Segment(kind="text", value="see "), Segment(kind="link", value="http://a")]


def test_plain_legacy_string_kept_as_is():
    [msg] = load_transcript([{"role": "assistant", "content": "just words"}])
    assert msg.content == "just words"


def test_segmented_records_accept_wire_type_key():
    [msg] = load_transcript([{"role": "assistant", "content": [
        {"type": "source", "value": "x"}, {"kind": "bogus", "value": "y"},
    ]}])
    assert [(s.kind, s.value) for s in msg.content] == [("source", "x"), ("text", "y")]


def test_bad_records_are_skipped():
    records = [
        {"role": "user", "content": 123},
        "not a record",
        {"role": "user", "content": "ok"},
    ]
    assert _texts(load_transcript(records)) == ["ok"]


def test_wire_aliases_round_trip():
    [msg] = load_transcript([{
        "_id": "m1", "role": "user", "content": "hi", "sessionId": "s1",
        "userId": "u1", "timeStamp": "2024-05-01T10:00:00Z", "__v": 0,
    }])
    assert msg.id == "m1"
    assert msg.session_id == "s1"
    wire = msg.to_wire()
    assert wire["_id"] == "m1"
    assert wire["sessionId"] == "s1"
    assert wire["timeStamp"].startswith("2024-05-01T10:00:00")
    assert "__v" not in wire


def test_unknown_role_treated_as_user():
    [msg] = load_transcript([{"role": "staff", "content": "hello"}])
    assert msg.role == "user"


def test_null_content_keeps_the_message():
    records = [
        {"role": "user", "content": "q", "timeStamp": "2024-05-01T10:00:00Z"},
        {"role": "assistant", "content": None, "timeStamp": "2024-05-01T10:00:00Z"},
    ]
    msgs = load_transcript(records)
    assert [m.role for m in msgs] == ["user", "assistant"]
    assert msgs[1].content == ""


def test_unparseable_timestamp_is_dropped_not_the_message():
    records = [
        {"role": "user", "content": "q", "timeStamp": "Mon Jan 01 2024 10:00:00 GMT+0000"},
        {"role": "assistant", "content": "a"},
    ]
    msgs = load_transcript(records)
    assert _texts(msgs) == ["q", "a"]
    assert msgs[0].timestamp is None


def test_epoch_timestamps_still_parse():
    [msg] = load_transcript([{"role": "user", "content": "q", "timeStamp": 1714557600}])
    assert msg.sort_instant() == 1714557600.0
