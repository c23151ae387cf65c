"""
Branch / counter reachability for a user.

Admins bypass scoping: is_admin is the single superuser predicate every other
check defers to. Scoped users reach only the branch and counter assigned on
their account. A missing or deactivated user gets False / [] rather than an
error, so callers cannot tell "no such user" from "no access".
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from rfidstock.models.company import BranchMaster, CounterMaster
from rfidstock.models.user import User
from rfidstock.schemas.access import BranchResponse, CounterResponse, UserAccessInfo
from rfidstock.services.tenant_context import TenantContextFactory
from rfidstock.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


class AccessControlService:
    def __init__(self, db: Session, tenant_context: Optional[TenantContextFactory] = None):
        self.users = UserDirectory(db)
        self.tenant_context = tenant_context or TenantContextFactory(db)

    def _user(self, user_id: int) -> Optional[User]:
        return self.users.get_active(user_id)

    def is_admin(self, user_id: int) -> bool:
        user = self._user(user_id)
        return bool(user and user.is_admin)

    def can_access_branch(self, user_id: int, branch_id: int) -> bool:
        user = self._user(user_id)
        if user is None:
            return False
        if user.is_admin:
            return True
        return user.branch_id is not None and user.branch_id == branch_id

    def can_access_counter(self, user_id: int, counter_id: int) -> bool:
        user = self._user(user_id)
        if user is None:
            return False
        if user.is_admin:
            return True
        return user.counter_id is not None and user.counter_id == counter_id

    def can_access_branch_and_counter(self, user_id: int, branch_id: int, counter_id: int) -> bool:
        """Both scopes must match for a scoped user; matching one of the two is not enough."""
        user = self._user(user_id)
        if user is None:
            return False
        if user.is_admin:
            return True
        return (
            user.branch_id is not None
            and user.counter_id is not None
            and user.branch_id == branch_id
            and user.counter_id == counter_id
        )

    def accessible_branch_ids(self, user_id: int) -> List[int]:
        user = self._user(user_id)
        if user is None:
            return []
        if user.is_admin:
            code = user.client_code
            result = self.tenant_context.enumerate_ids(
                code,
                lambda db: [
                    row[0]
                    for row in db.query(BranchMaster.branch_id)
                    .filter(BranchMaster.client_code == code)
                    .distinct()
                    .all()
                ],
            )
            return result.unwrap_or([])
        return [user.branch_id] if user.branch_id is not None else []

    def accessible_counter_ids(self, user_id: int) -> List[int]:
        user = self._user(user_id)
        if user is None:
            return []
        if user.is_admin:
            code = user.client_code
            result = self.tenant_context.enumerate_ids(
                code,
                lambda db: [
                    row[0]
                    for row in db.query(CounterMaster.counter_id)
                    .filter(CounterMaster.client_code == code)
                    .distinct()
                    .all()
                ],
            )
            return result.unwrap_or([])
        return [user.counter_id] if user.counter_id is not None else []

    def get_access_info(self, user_id: int) -> Optional[UserAccessInfo]:
        """Scope summary with branch/counter names; names degrade to None if the tenant DB is down."""
        user = self._user(user_id)
        if user is None:
            return None

        branch_name = None
        counter_name = None
        if user.branch_id is not None or user.counter_id is not None:
            def _names(db: Session):
                b = c = None
                if user.branch_id is not None:
                    branch = db.query(BranchMaster).filter(BranchMaster.branch_id == user.branch_id).first()
                    b = branch.branch_name if branch else None
                if user.counter_id is not None:
                    counter = db.query(CounterMaster).filter(CounterMaster.counter_id == user.counter_id).first()
                    c = counter.counter_name if counter else None
                return b, c

            branch_name, counter_name = self.tenant_context.lookup(user.client_code, _names).unwrap_or((None, None))

        return UserAccessInfo(
            user_id=user.id,
            user_name=user.user_name,
            is_admin=user.is_admin,
            branch_id=user.branch_id,
            branch_name=branch_name,
            counter_id=user.counter_id,
            counter_name=counter_name,
            client_code=user.client_code,
            accessible_branch_ids=self.accessible_branch_ids(user_id),
            accessible_counter_ids=self.accessible_counter_ids(user_id),
        )

    def list_accessible_branches(self, user_id: int) -> List[BranchResponse]:
        """Branches the user may see. Empty when the tenant DB is unavailable."""
        user = self._user(user_id)
        if user is None:
            return []
        code = user.client_code
        if user.is_admin:
            def _query(db: Session):
                rows = db.query(BranchMaster).filter(BranchMaster.client_code == code).order_by(BranchMaster.branch_id).all()
                return [BranchResponse.model_validate(b) for b in rows]
        elif user.branch_id is not None:
            def _query(db: Session):
                rows = db.query(BranchMaster).filter(
                    BranchMaster.client_code == code,
                    BranchMaster.branch_id == user.branch_id,
                ).all()
                return [BranchResponse.model_validate(b) for b in rows]
        else:
            return []
        return self.tenant_context.enumerate_ids(code, _query).unwrap_or([])

    def list_accessible_counters(self, user_id: int, branch_id: int) -> List[CounterResponse]:
        """Counters of one branch the user may see. Empty when the branch is out of scope or the tenant DB is unavailable."""
        user = self._user(user_id)
        if user is None or not self.can_access_branch(user_id, branch_id):
            return []
        code = user.client_code
        query_filter = [CounterMaster.client_code == code, CounterMaster.branch_id == branch_id]
        if not user.is_admin:
            if user.counter_id is None:
                return []
            query_filter.append(CounterMaster.counter_id == user.counter_id)

        def _query(db: Session):
            rows = db.query(CounterMaster).filter(*query_filter).order_by(CounterMaster.counter_id).all()
            return [CounterResponse.model_validate(c) for c in rows]

        return self.tenant_context.enumerate_ids(code, _query).unwrap_or([])
