from uuid import uuid4

from core.action_log import ActionLogger, ActionType, PerformerType


class TestActionLogger:
    """Tests for the audit trail."""

    def test_log_records_entry(self, clock):
        logger = ActionLogger(clock=clock)
        user_id = uuid4()

        entry = logger.log(
            ActionType.DOCUMENT_UPLOADED,
            "Document uploaded: a.pdf",
            entity_type="document",
            entity_id=user_id,
            affected_user_id=user_id,
            performer_type=PerformerType.USER,
        )

        assert entry.entity_id == str(user_id)
        assert entry.created_at == clock.now
        assert logger.entries == [entry]

    def test_list_newest_first_with_paging(self, clock):
        logger = ActionLogger(clock=clock)
        for index in range(3):
            logger.log(ActionType.PAYMENT_COMPLETED, f"payment {index}")
            clock.advance(minutes=1)

        newest = logger.list(limit=2)
        oldest = logger.list(limit=2, offset=2)

        assert [e.description for e in newest] == ["payment 2", "payment 1"]
        assert [e.description for e in oldest] == ["payment 0"]

    def test_list_filters(self, clock):
        logger = ActionLogger(clock=clock)
        user_id = uuid4()
        logger.log(ActionType.WITHDRAWAL_REQUESTED, "w", entity_type="withdrawal", affected_user_id=user_id)
        logger.log(ActionType.COMMISSION_EARNED, "c", entity_type="commission")

        assert len(logger.list(entity_type="withdrawal")) == 1
        assert len(logger.list(action_type=ActionType.COMMISSION_EARNED)) == 1
        assert len(logger.list(affected_user_id=user_id)) == 1
