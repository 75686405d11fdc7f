from cloudmap.assistant.sessions import MAX_INTENT_HISTORY, MAX_SESSION_MESSAGES, SessionStore


def test_append_and_history():
    store = SessionStore()
    store.append_message("s1", "user", "hi")
    store.append_message("s1", "assistant", "hello")

    session = store.get("s1")
    assert session.message_count == 2
    assert store.history("s1") == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]
    assert store.history("missing") == []


def test_intent_history_is_capped():
    store = SessionStore()
    for i in range(MAX_INTENT_HISTORY + 5):
        store.update("s1", intent="question" if i % 2 else "greeting")

    session = store.get("s1")
    assert len(session.intents) == MAX_INTENT_HISTORY


def test_analytics():
    store = SessionStore()
    assert store.analytics("nope") == {"messageCount": 0, "hasActiveSession": False}

    store.update("s1", intent="question")
    store.update("s1", intent="question")
    store.update("s1", intent="comparison")
    store.append_message("s1", "user", "hi")

    data = store.analytics("s1")
    assert data["hasActiveSession"] is True
    assert data["messageCount"] == 1
    assert data["intentDistribution"] == {"question": 2, "comparison": 1}
    assert data["sessionData"]["id"] == "s1"
    assert data["sessionData"]["messages"][0]["content"] == "hi"


def test_clear():
    store = SessionStore()
    store.get_or_create("s1")
    assert store.clear("s1") is True
    assert store.clear("s1") is False
    assert store.get("s1") is None


def test_stored_messages_are_capped():
    store = SessionStore()
    for i in range(MAX_SESSION_MESSAGES + 10):
        store.append_message("s1", "user", f"message {i}")

    session = store.get("s1")
    assert len(session.messages) == MAX_SESSION_MESSAGES
    assert session.messages[0]["content"] == "message 10"
    assert session.message_count == MAX_SESSION_MESSAGES + 10
