"""Readiness calibration constants and the curated practice list."""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

TARGET_TOPIC_COUNTS: Dict[str, int] = {
    "hash-table": 20,
    "string": 20,
    "linked-list": 12,
    "array": 24,
    "depth-first-search": 12,
    "breadth-first-search": 10,
    "binary-search": 7,
    "dynamic-programming": 14,
    "sorting": 10,
    "heap-priority-queue": 6,
    "queue": 5,
}

TARGET_TOPICS: Tuple[str, ...] = tuple(TARGET_TOPIC_COUNTS)

# Medium items at or above the upper band are easier than target, at or below
# the lower band harder than target.
UPPER_AC_RATE = 60.0
LOWER_AC_RATE = 40.0

EASY_POINTS = 0.4
HARD_POINTS = 2.0
MEDIUM_EASIER_POINTS = 0.75
MEDIUM_TARGET_POINTS = 1.0
MEDIUM_HARDER_POINTS = 1.5

READY_THRESHOLD = 1.0
ALMOST_THRESHOLD = 0.7

RECOMMENDED_MIN_MATCHES = 3

RECOMMENDED_LIST: Tuple[str, ...] = (
    "find-first-palindromic-string-in-the-array",
    "valid-palindrome",
    "reverse-linked-list",
    "delete-nodes-from-linked-list-present-in-array",
    "lru-cache",
    "valid-sudoku",
    "pascals-triangle",
    "split-strings-by-separator",
    "reverse-string",
    "reverse-string-ii",
    "reverse-words-in-a-string-iii",
    "decode-the-message",
    "jewels-and-stones",
    "number-of-good-pairs",
    "check-if-the-sentence-is-pangram",
    "rings-and-rods",
    "merge-nodes-in-between-zeros",
    "spiral-matrix",
    "string-compression",
    "find-the-minimum-and-maximum-number-of-nodes-between-critical-points",
    "watering-plants",
    "set-matrix-zeroes",
    "reverse-linked-list-ii",
    "brick-wall",
    "concatenation-of-array",
    "number-of-arithmetic-triplets",
    "spiral-matrix-iv",
    "zigzag-conversion",
    "binary-tree-inorder-traversal",
    "binary-tree-preorder-traversal",
    "binary-tree-postorder-traversal",
    "maximum-depth-of-binary-tree",
    "count-complete-tree-nodes",
    "search-in-a-binary-search-tree",
    "second-minimum-node-in-a-binary-tree",
    "flood-fill",
    "number-of-islands",
    "course-schedule",
    "surrounded-regions",
    "keys-and-rooms",
    "snakes-and-ladders",
    "shortest-path-with-alternating-colors",
    "shortest-path-in-a-grid-with-obstacles-elimination",
    "shortest-bridge",
    "minimum-depth-of-binary-tree",
    "count-good-nodes-in-binary-tree",
    "pacific-atlantic-water-flow",
    "shortest-path-in-binary-matrix",
    "reachable-nodes-with-restrictions",
    "number-of-operations-to-make-network-connected",
    "clone-graph",
    "path-sum-ii",
    "sum-root-to-leaf-numbers",
    "course-schedule-ii",
    "lowest-common-ancestor-of-a-binary-tree",
    "serialize-and-deserialize-binary-tree",
    "minesweeper",
    "number-of-enclaves",
    "minimum-time-to-collect-all-apples-in-a-tree",
    "maximum-binary-tree",
    "delete-nodes-and-return-forest",
    "count-nodes-with-the-highest-score",
    "most-frequent-subtree-sum",
    "path-sum-iii",
    "word-ladder",
    "coloring-a-border",
    "maximum-product-of-splitted-binary-tree",
    "path-sum",
    "fibonacci-number",
    "word-break",
    "knight-dialer",
    "number-of-dice-rolls-with-target-sum",
    "number-of-distinct-roll-sequences",
    "dice-roll-simulation",
    "n-th-tribonacci-number",
    "range-sum-query-immutable",
    "find-the-substring-with-maximum-cost",
    "divisor-game",
    "edit-distance",
    "house-robber",
    "range-sum-query-2d-immutable",
    "min-cost-climbing-stairs",
    "vowels-of-all-substrings",
    "number-of-ways-to-select-buildings",
    "coin-change",
    "how-many-numbers-are-smaller-than-the-current-number",
    "merge-sorted-array",
    "container-with-most-water",
    "merge-intervals",
    "maximum-length-of-pair-chain",
    "minimum-number-of-arrows-to-burst-balloons",
    "sort-colors",
    "sort-list",
    "largest-divisible-subset",
    "task-scheduler",
    "number-of-atoms",
    "minimum-area-rectangle",
    "search-a-2d-matrix",
    "minimum-score-by-changing-two-elements",
    "maximize-greatness-of-an-array",
    "design-a-number-container-system",
    "sort-an-array",
    "furthest-building-you-can-reach",
    "distant-barcodes",
    "number-of-steps-to-reduce-a-number-in-binary-representation-to-one",
    "binary-tree-right-side-view",
    "minimum-number-of-coins-for-fruits",
    "kth-largest-sum-in-a-binary-tree",
    "target-sum",
    "hand-of-straights",
    "number-of-matching-subsequences",
    "word-subsets",
    "removing-minimum-and-maximum-from-array",
    "populating-next-right-pointers-in-each-node-ii",
    "monotone-increasing-digits",
    "closest-nodes-queries-in-a-binary-search-tree",
    "find-good-days-to-rob-the-bank",
    "operations-on-tree",
    "count-number-of-ways-to-place-houses",
    "find-right-interval",
    "product-of-the-last-k-numbers",
    "minimum-remove-to-make-valid-parentheses",
    "word-search",
    "evaluate-the-bracket-pairs-of-a-string",
    "binary-tree-zigzag-level-order-traversal",
    "integer-break",
    "group-anagrams",
    "smallest-string-starting-from-leaf",
    "break-a-palindrome",
    "longest-univalue-path",
    "minimum-deletions-to-make-string-balanced",
    "find-three-consecutive-integers-that-sum-to-a-given-number",
    "max-sum-of-a-pair-with-equal-sum-of-digits",
    "path-with-minimum-effort",
    "populating-next-right-pointers-in-each-node",
    "ugly-number-ii",
    "coin-change-ii",
    "unique-binary-search-trees",
    "sum-of-distances",
    "alert-using-same-key-card-three-or-more-times-in-a-one-hour-period",
    "largest-plus-sign",
    "minimum-sideway-jumps",
    "boats-to-save-people",
    "course-schedule-iv",
    "insufficient-nodes-in-root-to-leaf-paths",
    "majority-element-ii",
)

RECOMMENDED_SET: FrozenSet[str] = frozenset(RECOMMENDED_LIST)
