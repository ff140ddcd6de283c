"""
Main-content detection by text density.

density = non-link text characters / (descendant elements + 1)

Only blocks holding a meaningful share of the page's text compete, so a
single long caption cannot beat the article it sits in.
"""

from typing import Dict, Optional, Tuple

from .snapshot import PageSnapshot, SnapshotNode

CONTENT_CANDIDATE_TAGS = {"main", "article", "section", "div"}
MIN_CONTENT_SHARE = 0.3


def text_metrics(root: SnapshotNode) -> Dict[int, Tuple[int, int]]:
    """Map id(node) -> (visible non-link text chars in subtree, descendant element count)."""
    nodes = list(root.walk())
    in_link: Dict[int, bool] = {}
    for node in nodes:
        parent_flag = in_link.get(id(node.parent), False) if node.parent is not None else False
        in_link[id(node)] = parent_flag or node.tag == "a"

    metrics: Dict[int, Tuple[int, int]] = {}
    for node in reversed(nodes):
        chars = len(node.text) if node.visible and not in_link[id(node)] else 0
        descendants = 0
        for child in node.children:
            child_chars, child_desc = metrics[id(child)]
            chars += child_chars
            descendants += child_desc + 1
        metrics[id(node)] = (chars, descendants)
    return metrics


def find_main_content(snapshot: PageSnapshot, min_share: float = MIN_CONTENT_SHARE) -> Optional[SnapshotNode]:
    """Highest text-density block under <body>, or None for text-less pages."""
    body = snapshot.body
    if body is None:
        return None
    metrics = text_metrics(body)
    total = metrics[id(body)][0]
    if total == 0:
        return None

    best = None
    best_score = -1.0
    for node in body.walk():
        if node is body or not node.visible or node.tag not in CONTENT_CANDIDATE_TAGS:
            continue
        chars, descendants = metrics[id(node)]
        if chars < min_share * total:
            continue
        score = chars / (descendants + 1)
        if score > best_score:
            best, best_score = node, score
    return best
