from guard.tracker import DetectionSample, PresenceStatus, PresenceTracker


def _tracker(threshold=4000):
    tracker = PresenceTracker(absence_threshold_ms=threshold, start_time=0)
    edges = []
    tracker.add_listener(edges.append)
    return tracker, edges


def _feed(tracker, samples):
    return [tracker.update(DetectionSample(t, d)) for t, d in samples]


def test_starts_present():
    tracker, edges = _tracker()
    assert tracker.status is PresenceStatus.PRESENT
    assert tracker.last_seen_at == 0
    assert edges == []


def test_misses_within_threshold_keep_present():
    tracker, edges = _tracker()
    results = _feed(tracker, [(0, True), (1200, False), (2400, False), (3600, False)])
    assert results == [None, None, None, None]
    assert tracker.status is PresenceStatus.PRESENT
    assert edges == []


def test_absent_at_first_sample_past_threshold():
    tracker, edges = _tracker()
    _feed(tracker, [(0, True), (1200, False), (2400, False), (3600, False)])
    assert tracker.update(DetectionSample(4800, False)) is PresenceStatus.ABSENT
    assert tracker.status is PresenceStatus.ABSENT
    assert edges == [PresenceStatus.ABSENT]


def test_gap_equal_to_threshold_is_not_absence():
    tracker, edges = _tracker()
    assert tracker.update(DetectionSample(4000, False)) is None
    assert tracker.update(DetectionSample(4001, False)) is PresenceStatus.ABSENT


def test_absent_edge_not_repeated():
    tracker, edges = _tracker()
    _feed(tracker, [(5000, False), (6200, False), (7400, False)])
    assert edges == [PresenceStatus.ABSENT]


def test_single_hit_restores_presence_and_edge_not_repeated():
    tracker, edges = _tracker()
    _feed(tracker, [(5000, False), (6200, True), (7400, True), (8600, True)])
    assert edges == [PresenceStatus.ABSENT, PresenceStatus.PRESENT]
    assert tracker.status is PresenceStatus.PRESENT
    assert tracker.last_seen_at == 8600


def test_threshold_wait_restarts_after_return():
    tracker, edges = _tracker()
    _feed(tracker, [(5000, False), (6000, True), (9000, False), (10000, False)])
    assert edges == [PresenceStatus.ABSENT, PresenceStatus.PRESENT]
    tracker.update(DetectionSample(10001, False))
    assert edges[-1] is PresenceStatus.ABSENT


def test_intermittent_misses_never_flap():
    tracker, edges = _tracker()
    t = 0
    for i in range(30):
        t += 1200
        tracker.update(DetectionSample(t, i % 3 == 0))
    assert edges == []


def test_last_seen_never_moves_backwards():
    tracker, _ = _tracker()
    tracker.update(DetectionSample(5000, True))
    tracker.update(DetectionSample(3000, True))
    assert tracker.last_seen_at == 5000


def test_reset_restores_initial_state():
    tracker, edges = _tracker()
    tracker.update(DetectionSample(9000, False))
    assert tracker.status is PresenceStatus.ABSENT
    tracker.reset(20000)
    assert tracker.status is PresenceStatus.PRESENT
    assert tracker.last_seen_at == 20000
    assert tracker.update(DetectionSample(23000, False)) is None
