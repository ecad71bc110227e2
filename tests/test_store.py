"""Unit and property tests for the session store."""
import pytest
from hypothesis import settings as hypothesis_settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, initialize, invariant, rule

from modelchat.catalog import DEFAULT_MODELS, Provider, default_catalog
from modelchat.errors import StoreNotInitializedError
from modelchat.sessions import NEW_CHAT_LABEL, ChatThread, Message, SessionStore, SwitchGuard


def _model(catalog, provider, model_id):
    model = catalog.resolve(provider, model_id)
    assert model is not None
    return model


class TestInit:
    """Tests for store initialization."""

    def test_init_seeds_one_empty_thread_on_default_model(self, catalog):
        store = SessionStore(catalog=catalog)
        store.init()

        assert len(store.chat_sessions) == 1
        thread = store.current_thread
        assert thread is not None
        assert thread.messages == ()
        assert thread.is_bound_to(catalog.default)
        assert store.selected_model == catalog.default

    def test_init_is_idempotent(self, store):
        first_id = store.current_chat_id
        store.init()
        assert store.current_chat_id == first_id
        assert len(store.chat_sessions) == 1

    def test_mutations_before_init_fail(self):
        store = SessionStore()
        with pytest.raises(StoreNotInitializedError):
            store.append_messages([Message.user("hi")])
        with pytest.raises(StoreNotInitializedError):
            store.create_thread()

    def test_views_before_init_are_empty(self):
        store = SessionStore()
        assert store.current_chat_id is None
        assert store.current_messages == ()
        assert store.list_threads() == []


class TestSelectModel:
    """Tests for model selection and thread resumption."""

    def test_selecting_new_model_creates_thread(self, store, catalog):
        haiku = _model(catalog, "anthropic", "claude-3-haiku-20240307")
        store.select_model(haiku)

        assert store.selected_model == haiku
        assert len(store.chat_sessions) == 2
        assert store.current_thread.is_bound_to(haiku)
        assert store.current_messages == ()

    def test_round_trip_resumes_previous_thread(self, store, catalog):
        gpt = store.selected_model
        first_id = store.current_chat_id
        history = (Message.user("Hi"), Message.assistant("Hello"))
        store.append_messages(history)

        store.select_model(_model(catalog, "anthropic", "claude-3-haiku-20240307"))
        store.select_model(gpt)

        assert store.current_chat_id == first_id
        assert store.current_messages == history
        assert len(store.chat_sessions) == 2

    def test_selecting_current_model_is_a_no_op(self, store):
        calls = []
        store.subscribe(lambda s: calls.append(s.current_chat_id))
        store.select_model(store.selected_model)
        assert calls == []
        assert len(store.chat_sessions) == 1

    def test_resumes_most_recent_thread_of_model(self, store, catalog):
        gpt = store.selected_model
        store.create_thread()
        newest = store.current_chat_id

        store.select_model(_model(catalog, "openai", "o1"))
        store.select_model(gpt)

        assert store.current_chat_id == newest


class TestCreateThread:
    """Tests for explicit thread creation."""

    def test_create_never_reuses_existing_thread(self, store):
        first = store.current_chat_id
        second = store.create_thread()

        assert second != first
        assert store.current_chat_id == second
        assert len(store.chat_sessions) == 2
        assert store.current_messages == ()

    def test_create_with_model_switches_selection(self, store, catalog):
        thread_id = store.create_thread(Provider.ANTHROPIC, "claude-3-opus-20240229")

        opus = _model(catalog, "anthropic", "claude-3-opus-20240229")
        assert store.selected_model == opus
        assert store.get_thread(thread_id).is_bound_to(opus)

    def test_create_with_unknown_model_uses_selected(self, store):
        selected = store.selected_model
        thread_id = store.create_thread("openai", "gpt-99")

        assert store.selected_model == selected
        assert store.get_thread(thread_id).is_bound_to(selected)


class TestSetActiveThread:
    """Tests for thread switching and the switch guard."""

    def test_switch_adopts_thread_model(self, store, catalog):
        gpt_thread = store.current_chat_id
        store.select_model(_model(catalog, "anthropic", "claude-3-haiku-20240307"))

        store.set_active_thread(gpt_thread)

        assert store.current_chat_id == gpt_thread
        assert store.selected_model == catalog.default

    def test_unknown_thread_is_ignored(self, store):
        current = store.current_chat_id
        store.set_active_thread("does-not-exist")
        assert store.current_chat_id == current

    def test_switch_during_cooldown_is_dropped(self, catalog):
        now = [100.0]
        store = SessionStore(catalog=catalog, switch_guard=SwitchGuard(cooldown=0.1, clock=lambda: now[0]))
        store.init()
        a = store.current_chat_id
        b = store.create_thread()

        store.set_active_thread(a)
        assert store.current_chat_id == a
        assert store.switch_in_flight

        store.set_active_thread(b)
        assert store.current_chat_id == a

        now[0] += 0.2
        assert not store.switch_in_flight
        store.set_active_thread(b)
        assert store.current_chat_id == b

    def test_reentrant_switch_from_listener_is_dropped(self, store):
        a = store.current_chat_id
        b = store.create_thread()
        c = store.create_thread()
        seen = []

        def listener(s):
            seen.append(s.current_chat_id)
            if s.current_chat_id == a:
                s.set_active_thread(b)

        store.subscribe(listener)
        store.set_active_thread(a)

        assert store.current_chat_id == a
        assert seen == [a]
        assert c in store.chat_sessions


class TestMessages:
    """Tests for message replacement and views."""

    def test_append_replaces_whole_list(self, store):
        store.append_messages([Message.user("one")])
        store.append_messages([Message.user("one"), Message.assistant("two")])

        assert [m.content for m in store.current_messages] == ["one", "two"]

    def test_current_messages_reads_through_thread(self, store):
        store.append_messages([Message.user("hello")])
        assert store.current_messages is store.current_thread.messages

    def test_append_to_background_thread(self, store):
        background = store.current_chat_id
        store.create_thread()

        store.append_messages([Message.user("late")], thread_id=background)

        assert store.current_messages == ()
        assert store.get_thread(background).messages == (Message.user("late"),)

    def test_append_to_unknown_thread_is_ignored(self, store):
        store.append_messages([Message.user("x")], thread_id="missing")
        assert all(not t.messages for t in store.chat_sessions.values())

    def test_clear_empties_active_thread_only(self, store):
        other = store.current_chat_id
        store.append_messages([Message.user("keep")])
        store.create_thread()
        store.append_messages([Message.user("drop")])

        store.clear_active_thread()

        assert store.current_messages == ()
        assert store.get_thread(other).messages == (Message.user("keep"),)

    def test_user_message_count(self, store):
        store.append_messages([
            Message.user("a"),
            Message.assistant("b"),
            Message.user("c"),
        ])
        assert store.user_message_count(store.current_chat_id) == 2
        assert store.user_message_count("missing") == 0

    def test_snapshot_does_not_change_after_append(self, store):
        snapshot = store.current_messages
        store.append_messages([Message.user("new")])
        assert snapshot == ()


class TestDeleteThread:
    """Tests for thread deletion."""

    def test_delete_inactive_thread_keeps_selection(self, store):
        first = store.current_chat_id
        second = store.create_thread()

        store.delete_thread(first)

        assert store.current_chat_id == second
        assert first not in store.chat_sessions

    def test_delete_active_falls_back_to_newest(self, store, catalog):
        oldest = store.current_chat_id
        haiku_thread = store.create_thread("anthropic", "claude-3-haiku-20240307")
        newest = store.create_thread("openai", "o1")

        store.delete_thread(newest)

        assert store.current_chat_id == haiku_thread
        assert store.selected_model == _model(catalog, "anthropic", "claude-3-haiku-20240307")
        assert oldest in store.chat_sessions

    def test_delete_last_thread_creates_fresh_one(self, store):
        only = store.current_chat_id
        selected = store.selected_model

        store.delete_thread(only)

        assert len(store.chat_sessions) == 1
        assert store.current_chat_id != only
        assert store.current_thread.is_bound_to(selected)
        assert store.current_messages == ()

    def test_delete_unknown_thread_is_ignored(self, store):
        store.delete_thread("missing")
        assert len(store.chat_sessions) == 1


class TestListingAndPreview:
    """Tests for thread listing, previews and names."""

    def test_list_is_newest_first(self, store):
        first = store.current_chat_id
        second = store.create_thread()
        third = store.create_thread()

        assert [t.id for t in store.list_threads()] == [third, second, first]

    def test_preview_of_empty_thread(self, store):
        assert store.preview(store.current_chat_id) == NEW_CHAT_LABEL

    def test_preview_truncates_first_user_message(self, store):
        store.append_messages([
            Message.user("What is the capital of France, and also of Spain?"),
            Message.assistant("Paris and Madrid."),
        ])
        assert store.preview(store.current_chat_id) == "What is the capital of France…"

    def test_short_message_is_not_truncated(self, store):
        store.append_messages([Message.user("Hello there")])
        assert store.preview(store.current_chat_id) == "Hello there"

    def test_preview_skips_assistant_messages(self):
        thread = ChatThread(
            provider=Provider.OPENAI,
            model_id="gpt-4o",
            messages=(Message.assistant("Welcome!"), Message.user("Question")),
        )
        assert thread.preview == "Question"

    def test_name_wins_over_preview(self, store):
        thread_id = store.current_chat_id
        store.rename_thread(thread_id, "Trip planning")
        assert store.preview(thread_id) == "Trip planning"

        store.rename_thread(thread_id, "")
        assert store.preview(thread_id) == NEW_CHAT_LABEL

    def test_model_name_of_thread(self, store):
        assert store.model_name(store.current_chat_id) == "GPT-4o (OpenAI)"
        assert store.model_name("missing") is None


class TestSubscribe:
    """Tests for change notification."""

    def test_listener_runs_after_each_mutation(self, store):
        calls = []
        store.subscribe(lambda s: calls.append(len(s.chat_sessions)))

        store.create_thread()
        store.append_messages([Message.user("hi")])

        assert calls == [2, 2]

    def test_unsubscribe_stops_notifications(self, store):
        calls = []
        unsubscribe = store.subscribe(lambda s: calls.append(1))
        unsubscribe()
        unsubscribe()
        store.create_thread()
        assert calls == []


class SessionStoreMachine(RuleBasedStateMachine):
    """Random operation sequences must keep the store consistent."""

    @initialize()
    def setup(self):
        self.store = SessionStore(catalog=default_catalog(), switch_guard=SwitchGuard(cooldown=0))
        self.store.init()
        self.created: set[str] = set(self.store.chat_sessions)

    def _pick(self, index: int) -> str:
        threads = self.store.list_threads()
        return threads[index % len(threads)].id

    @rule(model=st.sampled_from(DEFAULT_MODELS))
    def select_model(self, model):
        self.store.select_model(model)
        self.created |= set(self.store.chat_sessions)

    @rule(model=st.none() | st.sampled_from(DEFAULT_MODELS))
    def create_thread(self, model):
        before = set(self.store.chat_sessions)
        if model is None:
            new_id = self.store.create_thread()
        else:
            new_id = self.store.create_thread(model.provider, model.id)
        assert new_id not in before
        assert new_id not in self.created
        self.created.add(new_id)

    @rule(index=st.integers(min_value=0, max_value=50))
    def set_active_thread(self, index):
        target = self._pick(index)
        self.store.set_active_thread(target)
        assert self.store.current_chat_id == target

    @rule(text=st.text(min_size=1, max_size=60))
    def append_user_message(self, text):
        messages = (*self.store.current_messages, Message.user(text))
        self.store.append_messages(messages)
        assert self.store.current_messages == messages

    @rule()
    def clear_active_thread(self):
        self.store.clear_active_thread()
        assert self.store.current_messages == ()

    @rule(index=st.integers(min_value=0, max_value=50))
    def delete_thread(self, index):
        target = self._pick(index)
        self.store.delete_thread(target)
        assert target not in self.store.chat_sessions
        self.created |= set(self.store.chat_sessions)

    @rule(index=st.integers(min_value=0, max_value=50), name=st.text(max_size=20))
    def rename_thread(self, index, name):
        self.store.rename_thread(self._pick(index), name)

    @invariant()
    def never_empty(self):
        assert len(self.store.chat_sessions) >= 1

    @invariant()
    def active_thread_exists(self):
        assert self.store.current_chat_id in self.store.chat_sessions

    @invariant()
    def messages_read_through(self):
        assert self.store.current_messages is self.store.current_thread.messages

    @invariant()
    def active_thread_matches_selected_model(self):
        assert self.store.current_thread.is_bound_to(self.store.selected_model)

    @invariant()
    def listing_covers_all_threads(self):
        listed = [t.id for t in self.store.list_threads()]
        assert sorted(listed) == sorted(self.store.chat_sessions)


SessionStoreMachine.TestCase.settings = hypothesis_settings(max_examples=50, stateful_step_count=30, deadline=None)
TestSessionStoreMachine = SessionStoreMachine.TestCase
