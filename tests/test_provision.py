import pytest

from tmux_workspace.config import LayoutSpec
from tmux_workspace.errors import AddressingError
from tmux_workspace.errors import CleanupError
from tmux_workspace.errors import CreationError
from tmux_workspace.errors import DiscoveryError
from tmux_workspace.provision import capture_layout
from tmux_workspace.provision import provision_workspace
from tmux_workspace.tmux import FakeTmuxAdapter
from tmux_workspace.window import AttachMode

from conftest import INSIDE
from conftest import OUTSIDE


def test_fresh_workspace(adapter: FakeTmuxAdapter, request_factory) -> None:
    result = provision_workspace(adapter, request_factory(), environ=OUTSIDE)

    assert adapter.commands("new-session") == [("new-session", "proj")]
    assert result.created_session
    assert result.placeholder == FakeTmuxAdapter.default_window_name
    assert adapter.commands("kill-window") == [("kill-window", "proj:shell.0")]
    assert adapter.window_names("proj") == ["main"]
    assert adapter.pane_count("proj", "main") >= 3
    assert adapter.sent_keys["proj:main.0"] == [
        ['tmux select-layout -t proj:main.0 "D"', "Enter"],
        ["cmd0", "Enter"],
    ]
    assert adapter.sent_keys["proj:main.1"] == [["cmd1", "Enter"]]
    assert "proj:main.2" not in adapter.sent_keys
    assert adapter.commands("attach-session") == [("attach-session", "proj:main.0")]
    assert result.attach_mode is AttachMode.OUTSIDE
    assert result.cleanup_error is None
    assert [s.name for s in result.state.sessions] == ["proj"]
    assert [w.name for w in result.state.find_session("proj").windows] == ["main"]


def test_attach_happens_before_placeholder_cleanup(adapter: FakeTmuxAdapter, request_factory) -> None:
    provision_workspace(adapter, request_factory(), environ=OUTSIDE)

    names = [call[0] for call in adapter.calls]
    assert names.index("attach-session") < names.index("kill-window")


def test_existing_workspace_is_reused(adapter: FakeTmuxAdapter, request_factory) -> None:
    adapter.add_window("proj", "main", panes=3)

    result = provision_workspace(adapter, request_factory(), environ=OUTSIDE)

    assert not result.created_session
    assert adapter.commands("new-session") == []
    assert adapter.commands("new-window") == []
    assert adapter.commands("kill-window") == []
    assert adapter.sent_keys["proj:main.0"] == [
        ['tmux select-layout -t proj:main.0 "D"', "Enter"],
        ["cmd0", "Enter"],
    ]
    assert adapter.sent_keys["proj:main.1"] == [["cmd1", "Enter"]]


def test_rerun_is_idempotent(adapter: FakeTmuxAdapter, request_factory) -> None:
    request = request_factory()
    provision_workspace(adapter, request, environ=OUTSIDE)
    first_sent = {target: list(keys) for target, keys in adapter.sent_keys.items()}

    provision_workspace(adapter, request, environ=OUTSIDE)

    assert len(adapter.commands("new-session")) == 1
    assert len(adapter.commands("new-window")) == 1
    assert len(adapter.commands("split-window")) == 2
    assert adapter.window_names("proj") == ["main"]
    for target, keys in adapter.sent_keys.items():
        assert keys == first_sent[target] * 2


def test_other_sessions_are_untouched(adapter: FakeTmuxAdapter, request_factory) -> None:
    adapter.add_window("notes", "vim", panes=2)

    provision_workspace(adapter, request_factory(), environ=OUTSIDE)

    assert adapter.window_names("notes") == ["vim"]
    assert adapter.pane_count("notes", "vim") == 2
    assert not any(target.startswith("notes:") for target in adapter.sent_keys)


def test_dotted_window_name_is_addressed_consistently(adapter: FakeTmuxAdapter, request_factory) -> None:
    provision_workspace(adapter, request_factory(window="coc.nvim"), environ=OUTSIDE)

    assert adapter.commands("new-window")[0][2] == "coc-nvim"
    assert adapter.window_names("proj") == ["coc-nvim"]
    for call in adapter.calls:
        if call[0] in {"split-window", "send-keys", "attach-session"}:
            assert call[1].startswith("proj:coc-nvim.")
    assert adapter.sent_keys["proj:coc-nvim.0"][0][0] == 'tmux select-layout -t proj:coc-nvim.0 "D"'


def test_dotted_window_name_is_found_on_rerun(adapter: FakeTmuxAdapter, request_factory) -> None:
    request = request_factory(session="my proj", window="coc.nvim")
    provision_workspace(adapter, request, environ=OUTSIDE)
    provision_workspace(adapter, request, environ=OUTSIDE)

    assert adapter.commands("new-session") == [("new-session", "my-proj")]
    assert len(adapter.commands("new-window")) == 1


def test_inside_tmux_switches_client(adapter: FakeTmuxAdapter, request_factory) -> None:
    result = provision_workspace(adapter, request_factory(), environ=INSIDE)

    assert result.attach_mode is AttachMode.INSIDE
    assert adapter.commands("switch-client") == [("switch-client", "proj:main.0")]
    assert adapter.commands("attach-session") == []


def test_split_failure_aborts_and_keeps_panes(request_factory) -> None:
    adapter = FakeTmuxAdapter(fail_after={"split-window": 1})

    with pytest.raises(CreationError):
        provision_workspace(adapter, request_factory(layout=LayoutSpec(panes=4, descriptor="D")), environ=OUTSIDE)

    assert adapter.pane_count("proj", "main") == 2
    assert adapter.commands("attach-session") == []
    assert adapter.commands("kill-window") == []
    assert adapter.sent_keys == {}


def test_cleanup_failure_is_reported_not_raised(request_factory) -> None:
    adapter = FakeTmuxAdapter(fail_after={"kill-window": 0})

    result = provision_workspace(adapter, request_factory(), environ=OUTSIDE)

    assert isinstance(result.cleanup_error, CleanupError)
    assert adapter.commands("attach-session") == [("attach-session", "proj:main.0")]
    assert adapter.window_names("proj") == ["shell", "main"]


def test_requesting_default_window_name_keeps_it(adapter: FakeTmuxAdapter, request_factory) -> None:
    result = provision_workspace(
        adapter,
        request_factory(window=FakeTmuxAdapter.default_window_name),
        environ=OUTSIDE,
    )

    assert result.created_session
    assert result.placeholder is None
    assert adapter.commands("kill-window") == []
    assert adapter.window_names("proj") == [FakeTmuxAdapter.default_window_name]


def test_ambiguous_existing_windows_abort(adapter: FakeTmuxAdapter, request_factory) -> None:
    adapter.add_window("proj", "my app")
    adapter.add_window("proj", "my-app")

    with pytest.raises(AddressingError):
        provision_workspace(adapter, request_factory(window="my.app"), environ=OUTSIDE)
    assert adapter.commands("new-window") == []


def test_capture_layout() -> None:
    assert capture_layout(FakeTmuxAdapter(active_layout="abcd,80x24,0,0,1")) == "abcd,80x24,0,0,1"
    with pytest.raises(DiscoveryError):
        capture_layout(FakeTmuxAdapter())


def test_existing_dotted_window_is_reused(adapter: FakeTmuxAdapter, request_factory) -> None:
    adapter.add_window("proj", "coc.nvim", panes=3)

    result = provision_workspace(adapter, request_factory(window="coc.nvim"), environ=OUTSIDE)

    assert not result.created_session
    assert adapter.commands("new-window") == []
    assert adapter.window_names("proj") == ["coc.nvim"]
    assert adapter.sent_keys["proj:0.0"] == [
        ['tmux select-layout -t proj:0.0 "D"', "Enter"],
        ["cmd0", "Enter"],
    ]
    assert adapter.sent_keys["proj:0.1"] == [["cmd1", "Enter"]]
    assert adapter.commands("attach-session") == [("attach-session", "proj:0.0")]
