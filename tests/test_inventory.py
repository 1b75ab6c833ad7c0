from __future__ import annotations

from pathlib import Path

import pytest

from playdeck.inventory import LOCAL_HOST_LINE, build_blocks, render_inventory, write_inventory
from playdeck.models import InventoryMeta


@pytest.mark.parametrize(
    "meta",
    [
        InventoryMeta(hosts=["host1", "host2"], groups=["group1", "group2"]),
        InventoryMeta(),
    ],
)
def test_local_form_lists_only_localhost(meta: InventoryMeta) -> None:
    text = render_inventory(meta, local=True)
    assert text == LOCAL_HOST_LINE + "\n"
    assert "host1" not in text and "group1" not in text


def test_remote_form_hosts_and_groups() -> None:
    text = render_inventory(InventoryMeta(hosts=["h1", "h2"], groups=["g1"]))
    assert text == "[default]\nh1\nh2\n\n[g1]\nh1\nh2\n"


def test_remote_form_preserves_order_and_empty_group_blocks() -> None:
    text = render_inventory(InventoryMeta(hosts=[], groups=["b", "a"]))
    assert text == "[default]\n\n[b]\n\n[a]\n"


def test_remote_form_header_only_when_empty() -> None:
    assert render_inventory(InventoryMeta()) == "[default]\n"


def test_build_blocks() -> None:
    blocks = build_blocks(InventoryMeta(hosts=["h1"], groups=["g1", "g2"]))
    assert [b.name for b in blocks] == ["default", "g1", "g2"]
    assert all(b.hosts == ["h1"] for b in blocks)


def test_write_inventory(tmp_path: Path) -> None:
    path = write_inventory(InventoryMeta(hosts=["h1"]), tmp_path / "play-0")
    assert path == tmp_path / "play-0" / "hosts"
    assert path.read_text(encoding="utf-8") == "[default]\nh1\n"
