"""生命周期状态机单元测试

测试内容：
1. 合法流转通过
2. 非法流转被拒绝
3. archived_reason 到状态、事件类型的映射
"""

import pytest
from taskplanner.core.models.enums import (
    VALID_TRANSITIONS,
    ArchiveReason,
    EventType,
    LifecycleState,
    event_type_for,
    state_for,
    validate_transition,
)


class TestLifecycleTransitions:
    """状态流转验证"""

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            (LifecycleState.ACTIVE, LifecycleState.COMPLETED),
            (LifecycleState.ACTIVE, LifecycleState.DELETED),
            (LifecycleState.COMPLETED, LifecycleState.ACTIVE),
            (LifecycleState.DELETED, LifecycleState.ACTIVE),
        ],
    )
    def test_valid_transition(self, from_state: LifecycleState, to_state: LifecycleState):
        """合法流转应通过验证"""
        assert validate_transition(from_state, to_state) is True

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            (LifecycleState.ACTIVE, LifecycleState.ACTIVE),
            (LifecycleState.COMPLETED, LifecycleState.DELETED),
            (LifecycleState.COMPLETED, LifecycleState.COMPLETED),
            (LifecycleState.DELETED, LifecycleState.COMPLETED),
            (LifecycleState.DELETED, LifecycleState.DELETED),
        ],
    )
    def test_invalid_transition(self, from_state: LifecycleState, to_state: LifecycleState):
        """归档条目不能直接换桶，也不能重复归档"""
        assert validate_transition(from_state, to_state) is False

    def test_transitions_cover_all_states(self):
        for state in LifecycleState:
            assert state in VALID_TRANSITIONS, f"{state} 未在 VALID_TRANSITIONS 中定义"


class TestReasonMapping:
    """归档原因映射"""

    def test_state_for(self):
        assert state_for(None) == LifecycleState.ACTIVE
        assert state_for(ArchiveReason.COMPLETED) == LifecycleState.COMPLETED
        assert state_for(ArchiveReason.DELETED) == LifecycleState.DELETED

    def test_event_type_for(self):
        assert event_type_for(ArchiveReason.COMPLETED) == EventType.COMPLETED
        assert event_type_for(ArchiveReason.DELETED) == EventType.DELETED

    def test_enum_values_match_storage(self):
        """枚举值即落库文本"""
        assert [r.value for r in ArchiveReason] == ["completed", "deleted"]
        assert {e.value for e in EventType} == {"completed", "deleted", "restored"}
