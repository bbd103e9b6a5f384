"""
Identity Resolver
Maps usernames onto client partitions of the master credential store.

The credential store holds one tab per client. Each tab lists users from row 2
(A=username, B=password, C=branch, D=restricted Y/N, E=level L1/L2,
Z=paper mode Y/N) and keeps the client's order data store id in F2.
"""
import time
from typing import Dict, List, Optional, Tuple

import config
from orders import messages
from orders.errors import AuthFailure, Forbidden, MissingConfiguration
from orders.models import UserInfo
from orders.row_codec import cell_text
from sheets.store import a1_range
from utils.logger import get_logger

logger = get_logger()

# Column mapping for client partition tabs (0-indexed within A:Z)
COL_USERNAME = 0        # A
COL_PASSWORD = 1        # B
COL_BRANCH = 2          # C
COL_RESTRICTED = 3      # D
COL_LEVEL = 4           # E
COL_PAPER_MODE = 25     # Z


def _cell(row: List, idx: int) -> str:
    return cell_text(row[idx]) if len(row) > idx else ''


def _is_yes(value: str) -> bool:
    return value.strip().upper() == 'Y'


class IdentityResolver:
    """Resolves users and their client partition from the credential store."""

    def __init__(self, store, master_sheet_id: Optional[str] = None,
                 cache_ttl_seconds: Optional[int] = None):
        """
        Args:
            store: TabularStore (or compatible) used for every read
            master_sheet_id: credential store id; defaults to config
            cache_ttl_seconds: reuse resolved users for this long; 0 disables
        """
        self.store = store
        self.master_sheet_id = master_sheet_id or config.GOOGLE_CREDENTIALS_SHEET_ID
        if cache_ttl_seconds is None:
            cache_ttl_seconds = config.USER_CACHE_TTL_SECONDS
        self.cache_ttl_seconds = cache_ttl_seconds
        self._cache: Dict[str, Tuple[UserInfo, float]] = {}

    # ─────────────────────────────────────────────────────────────
    # Internal helpers
    # ─────────────────────────────────────────────────────────────

    def _master_id(self) -> str:
        if not self.master_sheet_id:
            raise MissingConfiguration("GOOGLE_CREDENTIALS_SHEET_ID is not set")
        return self.master_sheet_id

    def _client_tabs(self) -> List[str]:
        reserved = set(config.RESERVED_CLIENT_TABS)
        return [t for t in self.store.list_tabs(self._master_id()) if t and t not in reserved]

    def _user_rows(self, tab: str) -> List[List]:
        return self.store.read_range(self._master_id(), a1_range(tab, 'A2:Z'))

    def _budget_sheet_id(self, tab: str) -> str:
        cell_ref = config.BUDGET_SHEET_ID_CELL
        value = cell_text(self.store.read_cell(self._master_id(), a1_range(tab, cell_ref))).strip()
        if not value:
            raise MissingConfiguration(f"BudgetSheetId missing in {tab}!{cell_ref}")
        return value

    def _to_user(self, tab: str, row: List) -> UserInfo:
        return UserInfo(
            username=_cell(row, COL_USERNAME).strip(),
            tab=tab,
            branch=_cell(row, COL_BRANCH).strip(),
            restricted=_is_yes(_cell(row, COL_RESTRICTED)),
            level=_cell(row, COL_LEVEL).strip().upper() or 'L1',
            paper_mode=_is_yes(_cell(row, COL_PAPER_MODE)),
            budget_sheet_id=self._budget_sheet_id(tab),
        )

    # ─────────────────────────────────────────────────────────────
    # Public methods
    # ─────────────────────────────────────────────────────────────

    def authenticate(self, username: str, password: str) -> UserInfo:
        """
        Find the first client partition row matching username and password.

        Partitions are scanned in tab order and the scan stops at the first
        match, so a username and password pair repeated across clients only
        reaches the first. A row with a username and a blank password signs in
        with an empty password.

        Raises:
            AuthFailure: no row matches
            MissingConfiguration: the matched partition has no data store id
        """
        username = username or ''
        password = password or ''
        for tab in self._client_tabs():
            for row in self._user_rows(tab):
                u = _cell(row, COL_USERNAME).strip()
                p = _cell(row, COL_PASSWORD)
                if not u and not p:
                    continue
                if u == username and p == password:
                    user = self._to_user(tab, row)
                    logger.log_login(username, True, tab=tab, level=user.level)
                    return user
        logger.log_login(username, False)
        raise AuthFailure(messages.LOGIN_FAILED)

    def find_by_username(self, username: str) -> Optional[UserInfo]:
        """Same scan as authenticate, matching on username only."""
        if not username:
            return None

        if self.cache_ttl_seconds > 0:
            cached = self._cache.get(username)
            if cached is not None:
                user, ts = cached
                if time.monotonic() - ts < self.cache_ttl_seconds:
                    return user

        for tab in self._client_tabs():
            for row in self._user_rows(tab):
                u = _cell(row, COL_USERNAME).strip()
                if not u:
                    continue
                if u == username:
                    user = self._to_user(tab, row)
                    if self.cache_ttl_seconds > 0:
                        self._cache[username] = (user, time.monotonic())
                    return user
        return None

    def resolve_by_username(self, username: str, not_found_message: str = messages.USER_NOT_FOUND) -> UserInfo:
        """
        Resolve a post-login caller.

        Raises:
            AuthFailure: username not present in any client partition
        """
        user = self.find_by_username(username)
        if user is None:
            raise AuthFailure(not_found_message)
        return user

    def branches_for(self, user: UserInfo) -> List[str]:
        """Distinct branch names (column C) of the user's client partition, first-seen order."""
        rows = self.store.read_range(self._master_id(), a1_range(user.tab, 'C2:C'))
        branches = []
        for row in rows:
            branch = _cell(row, 0).strip()
            if branch and branch not in branches:
                branches.append(branch)
        return branches


def require_l2(user: UserInfo, message: str = messages.APPROVAL_FORBIDDEN) -> None:
    """Authorization predicate for approver-only operations."""
    if not user.is_l2:
        raise Forbidden(message)


def require_branch(user: UserInfo, branch_name: str) -> None:
    """An L1 user with a branch on file may only act for that branch."""
    if user.is_l2:
        return
    if user.branch and user.branch != branch_name:
        raise Forbidden(messages.BRANCH_FORBIDDEN)
