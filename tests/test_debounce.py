import asyncio

import pytest

from constants import REGIONS
from coordinator import QueryCoordinator, Source, normalize_state
from debounce import DebounceGate
from models import MatchKind
from search_engine import StaticIndex


@pytest.mark.asyncio
async def test_rapid_keystrokes_coalesce_into_one_search():
    searched = []
    cleared = []
    gate = DebounceGate(searched.append, lambda: cleared.append(True), delay=0.05)
    for text in ("K", "Ka", "Kat"):
        await gate.on_input(text)
        await asyncio.sleep(0.01)
    assert searched == []
    await asyncio.sleep(0.15)
    assert searched == ["Kat"]
    assert cleared == []


@pytest.mark.asyncio
async def test_each_pause_emits_once():
    searched = []
    gate = DebounceGate(searched.append, lambda: None, delay=0.02)
    await gate.on_input("Kath")
    await asyncio.sleep(0.1)
    await gate.on_input("Kathmandu")
    await asyncio.sleep(0.1)
    assert searched == ["Kath", "Kathmandu"]


@pytest.mark.asyncio
async def test_clear_bypasses_delay_and_cancels_pending_search():
    searched = []
    cleared = []
    gate = DebounceGate(searched.append, lambda: cleared.append(True), delay=0.05)
    await gate.on_input("Kat")
    assert gate.pending
    await gate.on_input("")
    # cleared immediately, no waiting for the quiet period
    assert cleared == [True]
    assert not gate.pending
    await asyncio.sleep(0.1)
    assert searched == []


@pytest.mark.asyncio
async def test_whitespace_counts_as_empty():
    cleared = []
    gate = DebounceGate(lambda text: None, lambda: cleared.append(True), delay=0.01)
    await gate.on_input("   ")
    assert cleared == [True]


@pytest.mark.asyncio
async def test_close_cancels_pending_search():
    searched = []
    gate = DebounceGate(searched.append, lambda: None, delay=0.02)
    await gate.on_input("Bag")
    await gate.close()
    await asyncio.sleep(0.05)
    assert searched == []


@pytest.mark.asyncio
async def test_close_cancels_running_search():
    started = asyncio.Event()
    outcome = []

    async def slow_search(text):
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            outcome.append("cancelled")
            raise
        outcome.append("finished")

    gate = DebounceGate(slow_search, lambda: None, delay=0.01)
    await gate.on_input("Kath")
    await asyncio.wait_for(started.wait(), timeout=1)
    assert gate.emitting
    assert not gate.pending

    await gate.close()
    assert outcome == ["cancelled"]
    assert not gate.emitting


@pytest.mark.asyncio
async def test_new_input_does_not_cancel_running_search():
    release = asyncio.Event()
    finished = []

    async def slow_search(text):
        await release.wait()
        finished.append(text)

    gate = DebounceGate(slow_search, lambda: None, delay=0.01)
    await gate.on_input("Kath")
    await asyncio.sleep(0.05)
    assert gate.emitting
    await gate.on_input("Kaski")
    release.set()
    await asyncio.sleep(0.05)
    assert finished == ["Kath", "Kaski"]


@pytest.mark.asyncio
async def test_search_errors_are_logged(caplog):
    def broken(text):
        raise RuntimeError("search blew up")

    gate = DebounceGate(broken, lambda: None, delay=0.01)
    await gate.on_input("Bag")
    await asyncio.sleep(0.05)
    assert "search blew up" in caplog.text
    assert not gate.emitting


@pytest.mark.asyncio
async def test_gate_drives_coordinator():
    published = []

    class Renderer:
        async def render(self, generation, query, results):
            published.append((query, [r.label for r in results]))

        async def clear(self, generation):
            published.append(("", []))

    source = Source(MatchKind.STATE, StaticIndex("states", REGIONS, fields=["name"]), normalize_state)
    coordinator = QueryCoordinator([source], renderer=Renderer())
    gate = DebounceGate(coordinator.search, coordinator.clear, delay=0.02)
    for text in ("B", "Ba", "Bag"):
        await gate.on_input(text)
    await asyncio.sleep(0.1)
    await gate.on_input("")
    assert published == [("Bag", ["Bagmati"]), ("", [])]
