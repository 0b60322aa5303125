"""Tests for running queries against a host and reporting outcomes."""

from layer_query.core.search.context import CancelToken
from layer_query.core.search.engine import SearchEngine
from layer_query.host import DocumentHost
from layer_query.models.node import NodeKind, SceneDocument, SceneNode
from layer_query.models.outcome import OutcomeStatus
from layer_query.runner import clear_selection, run_query, selection_label
from tests.unit.fakes import FailingHost, FailingStore, FakeStore, RecordingHost


def test_run_query_selects_and_focuses_matches(host: DocumentHost) -> None:
    outcome = run_query(host, "=Title")
    assert outcome.status is OutcomeStatus.SELECTED
    assert outcome.message == "Found and selected 2 layers"
    assert outcome.count == 2
    assert [n.id for n in host.selection] == ["3:1", "4:1"]
    assert [n.id for n in host.focused] == ["3:1", "4:1"]


def test_run_query_singular_message(host: DocumentHost) -> None:
    outcome = run_query(host, "!Button --2")
    assert outcome.message == "Found and selected 1 layer"


def test_run_query_switches_page_and_selects(host: DocumentHost) -> None:
    outcome = run_query(host, "#Library/?Button")
    assert outcome.status is OutcomeStatus.SELECTED
    assert outcome.message == "Found page and selected 1 layer"
    assert host.current_page.name == "Library"
    assert [n.id for n in host.selection] == ["10:1"]


def test_run_query_page_only(host: DocumentHost) -> None:
    outcome = run_query(host, "#Library")
    assert outcome.status is OutcomeStatus.PAGE_ONLY
    assert outcome.message == "Found page"
    assert outcome.count == 0
    assert host.current_page.id == "10:0"
    assert list(host.selection) == []


def test_run_query_no_match_leaves_selection(document: SceneDocument) -> None:
    card = document.get("3:0")
    assert card is not None
    host = DocumentHost(document, selection=[card])
    outcome = run_query(host, "Nothing like this")
    assert outcome.status is OutcomeStatus.NO_MATCH
    assert list(host.selection) == [card]


def test_run_query_cancelled_is_not_a_partial_selection(host: DocumentHost) -> None:
    token = CancelToken()
    token.cancel()
    outcome = run_query(host, "#Library/?Button", token=token)
    assert outcome.status is OutcomeStatus.CANCELLED
    assert outcome.message == "Search cancelled"
    assert outcome.results == ()
    assert host.current_page.name == "Home"
    assert list(host.selection) == []


def test_run_query_cancelled_under_hidden_only_restores_skip_flag() -> None:
    root = SceneNode(id="0:0", kind=NodeKind.DOCUMENT)
    page = root.append(SceneNode(id="1:0", kind=NodeKind.PAGE, name="Page"))
    for i in range(200):
        page.append(SceneNode(id=f"2:{i}", kind=NodeKind.TEXT, name="Hint", visible=False))
    host = RecordingHost(SceneDocument(root))
    token = CancelToken()
    outcome = run_query(host, "Hint --h", token=token, on_progress=lambda _: token.cancel())
    assert outcome.status is OutcomeStatus.CANCELLED
    assert False in host.flags_seen
    assert host.skip_invisible_instance_children is True
    assert list(host.selection) == []


def test_run_query_reports_host_errors(document: SceneDocument) -> None:
    host = FailingHost(document)
    outcome = run_query(host, "=Title --a")
    assert outcome.status is OutcomeStatus.ERROR
    assert outcome.message == "Error: host went away"
    assert host.skip_invisible_instance_children is True


def test_run_query_stores_last_query(host: DocumentHost) -> None:
    store = FakeStore()
    run_query(host, "@Card", store=store)
    assert store.queries == ["@Card"]
    assert store.get_last_query() == "@Card"


def test_run_query_survives_store_failure(host: DocumentHost) -> None:
    outcome = run_query(host, "@Card", store=FailingStore())
    assert outcome.status is OutcomeStatus.SELECTED
    assert outcome.count == 2


def test_run_query_clears_engine_caches(host: DocumentHost) -> None:
    engine = SearchEngine(host)
    run_query(host, "=Title", engine=engine)
    host.select([])
    # A cache left over from the first run would report zero visits.
    assert engine.search("=Title").visited > 0


def test_selection_label_without_selection_names_page(host: DocumentHost) -> None:
    assert selection_label(host) == "Inside: #Home"


def test_selection_label_names_container_of_selected_text(document: SceneDocument) -> None:
    cta = document.get("3:2")
    button = document.get("5:1")
    assert cta is not None
    assert button is not None
    host = DocumentHost(document, selection=[cta, button])
    assert selection_label(host) == "Inside: @Card, !Button"


def test_clear_selection_returns_page_label(document: SceneDocument) -> None:
    card = document.get("3:0")
    assert card is not None
    host = DocumentHost(document, selection=[card])
    assert clear_selection(host) == "Inside: #Home"
    assert list(host.selection) == []


def test_selection_label_names_page_for_loose_layer(document: SceneDocument) -> None:
    icon = document.get("7:0")
    assert icon is not None
    assert selection_label(DocumentHost(document, selection=[icon])) == "Inside: #Home"
