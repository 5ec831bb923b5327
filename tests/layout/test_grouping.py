"""
Grouping Heuristic Tests

Comparison is with the immediately preceding operation only.
"""

from txflow.contracts.operations import AssetRef, OperationInput
from txflow.layout.grouping import GroupingHeuristic, OperationGroup, shares_entity

from tests.fixtures import asset_chain, payment_chain


def op(op_id, **fields):
    return OperationInput(op_id=op_id, op_type="payment", **fields)


class TestAssignment:

    def test_payment_chain(self):
        assert GroupingHeuristic().assign(payment_chain()) == (0, 0, 1)

    def test_shared_asset_joins_group(self):
        assert GroupingHeuristic().assign(asset_chain()) == (0, 0, 1)

    def test_empty_and_single(self):
        heuristic = GroupingHeuristic()
        assert heuristic.assign(()) == ()
        assert heuristic.assign((op("x"),)) == (0,)

    def test_no_transitive_merge_with_earlier_members(self):
        # a-c overlap exists but c is compared with b only
        ops = (
            op("a", from_account="A", to_account="B"),
            op("b", from_account="B", to_account="X"),
            op("c", from_account="A", to_account="Z"),
        )
        assert GroupingHeuristic().assign(ops) == (0, 0, 1)

    def test_destination_counts_as_counterparty(self):
        ops = (
            op("a", source_account="S", destination="D"),
            op("b", source_account="D"),
        )
        assert GroupingHeuristic().assign(ops) == (0, 0)

    def test_groups_never_reopen(self):
        ops = (
            op("a", account="A"),
            op("b", account="B"),
            op("c", account="A"),
        )
        assert GroupingHeuristic().assign(ops) == (0, 1, 2)


class TestGroups:

    def test_members_and_sizes(self):
        groups = GroupingHeuristic().groups(payment_chain())

        assert groups == (
            OperationGroup(group_index=0, member_ordinals=(0, 1)),
            OperationGroup(group_index=1, member_ordinals=(2,)),
        )
        assert groups[0].size == 2
        assert groups[1].first_ordinal == 2


class TestSharesEntity:

    def test_native_asset_identity(self):
        left = op("a", assets=(AssetRef(),))
        right = op("b", assets=(AssetRef.of(None, None),))
        assert shares_entity(left, right)

    def test_same_code_different_issuer(self):
        left = op("a", assets=(AssetRef.of("USDC", "G1"),))
        right = op("b", assets=(AssetRef.of("USDC", "G2"),))
        assert not shares_entity(left, right)

    def test_nothing_in_common(self):
        assert not shares_entity(op("a"), op("b"))
