from llamatalk.core.scroll import ScrollPolicy, ScrollState


def test_near_bottom_threshold():
    policy = ScrollPolicy()
    # total 20, height 10: near when offset >= 7
    assert policy.is_near_bottom(ScrollState(offset=7), 20, 10)
    assert not policy.is_near_bottom(ScrollState(offset=6), 20, 10)


def test_short_content_counts_as_bottom():
    assert ScrollPolicy().is_near_bottom(ScrollState(offset=0), 4, 10)


def test_follow_snaps_when_near_bottom():
    policy = ScrollPolicy()
    state = ScrollState(offset=10, at_bottom=True)
    policy.follow(state, True, 25, 10)
    assert state.offset == 15
    assert state.at_bottom


def test_follow_holds_position_when_scrolled_back():
    policy = ScrollPolicy()
    state = ScrollState(offset=2, at_bottom=False)
    policy.follow(state, False, 40, 10)
    assert state.offset == 2
    assert not state.at_bottom


def test_follow_clamps_offset_into_range():
    policy = ScrollPolicy()
    state = ScrollState(offset=30, at_bottom=False)
    policy.follow(state, False, 12, 10)
    assert state.offset == 2
    assert state.at_bottom


def test_user_scroll_is_clamped():
    policy = ScrollPolicy()
    state = ScrollState(offset=5)
    assert policy.scroll(state, -100, 30, 10)
    assert state.offset == 0
    assert not state.at_bottom

    assert policy.scroll(state, 100, 30, 10)
    assert state.offset == 20
    assert state.at_bottom


def test_scroll_allowed_while_streaming_by_default():
    policy = ScrollPolicy()
    state = ScrollState(offset=20)
    assert policy.scroll(state, -3, 30, 10, streaming=True)
    assert state.offset == 17


def test_scroll_lock_suppresses_input_while_streaming():
    policy = ScrollPolicy(lock_while_streaming=True)
    state = ScrollState(offset=20)
    assert not policy.scroll(state, -3, 30, 10, streaming=True)
    assert state.offset == 20

    assert policy.scroll(state, -3, 30, 10, streaming=False)
    assert state.offset == 17
