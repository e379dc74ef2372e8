from __future__ import annotations

import unittest

from waste_ledger.identifiers import DISCOVERED_SOURCE, ORIGINATOR_SOURCE, RECIPIENT_SOURCE, IdentifierCandidate
from waste_ledger.partitions import (
    EXACT,
    NORMALIZED,
    PREFIX,
    attempted_partition_names,
    find_partition,
    match_partition_name,
)

RECIPIENT = IdentifierCandidate("11111111", RECIPIENT_SOURCE)
ORIGINATOR = IdentifierCandidate("22222222", ORIGINATOR_SOURCE)


class MatchPartitionNameTests(unittest.TestCase):
    def test_exact_match(self):
        self.assertEqual(match_partition_name("150101 11111111", ["List1", "150101 11111111"]), ("150101 11111111", EXACT))

    def test_whitespace_is_normalized(self):
        self.assertEqual(match_partition_name("150101 11111111", ["150101  11111111 "]), ("150101  11111111 ", NORMALIZED))

    def test_variant_suffix_matches_by_prefix(self):
        self.assertEqual(match_partition_name("150101 11111111", ["150101 11111111_2"]), ("150101 11111111_2", PREFIX))

    def test_normalized_equality_beats_earlier_prefix_match(self):
        names = ["150101 11111111_2", "150101  11111111"]
        self.assertEqual(match_partition_name("150101 11111111", names), ("150101  11111111", NORMALIZED))

    def test_no_match(self):
        self.assertIsNone(match_partition_name("150101 11111111", ["150102 11111111"]))


class FindPartitionTests(unittest.TestCase):
    def test_recipient_partition_wins_over_originator(self):
        match = find_partition("150101", [RECIPIENT, ORIGINATOR], ["150101 22222222", "150101 11111111"])
        self.assertEqual(match.partition_name, "150101 11111111")
        self.assertEqual(match.candidate, RECIPIENT)
        self.assertEqual(match.strategy, EXACT)

    def test_originator_used_when_recipient_partition_missing(self):
        match = find_partition("150101", [RECIPIENT, ORIGINATOR], ["150101 22222222"])
        self.assertEqual(match.partition_name, "150101 22222222")
        self.assertEqual(match.candidate.source, ORIGINATOR_SOURCE)

    def test_discovered_identifier_is_the_last_resort(self):
        discovered = IdentifierCandidate("33333333", DISCOVERED_SOURCE)
        match = find_partition("200101", [RECIPIENT, discovered], ["200101 33333333_2"])
        self.assertEqual(match.partition_name, "200101 33333333_2")
        self.assertEqual(match.strategy, PREFIX)
        self.assertEqual(match.target_name, "200101 33333333")

    def test_missing_waste_code_is_not_found(self):
        self.assertIsNone(find_partition("", [RECIPIENT], [" 11111111", "11111111"]))
        self.assertEqual(attempted_partition_names("", [RECIPIENT, ORIGINATOR]), [])

    def test_no_candidates_is_not_found(self):
        self.assertIsNone(find_partition("150101", [], ["150101 11111111"]))

    def test_attempted_names_follow_candidate_order(self):
        self.assertEqual(
            attempted_partition_names("150101", [RECIPIENT, ORIGINATOR]),
            ["150101 11111111", "150101 22222222"],
        )


if __name__ == "__main__":
    unittest.main()
