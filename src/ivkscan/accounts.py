"""
Find which account of a seed phrase owns a transaction.

Accounts 0 .. max_accounts - 1 are derived in turn and every Orchard
action of the transaction is tried against each. An owner at an index
>= max_accounts looks the same as no owner at all.
"""

import logging
from dataclasses import replace
from typing import Optional, Union

from . import config, unified
from .actions import MatchResult
from .backend import OrchardBackend, get_backend
from .errors import KeyDerivationFailed
from .keys import load_full_viewing_key
from .matcher import match_actions
from .seed import AccountDerivation, mnemonic_to_seed, viewing_key_for_account
from .transaction import orchard_actions
from .unified import Network

logger = logging.getLogger(__name__)


def find_owning_account(
    tx: Union[bytes, str],
    phrase: str,
    network: Union[str, Network] = "mainnet",
    max_accounts: Optional[int] = None,
    backend: Optional[OrchardBackend] = None,
    derivation: Optional[AccountDerivation] = None,
    txid: str = "",
    height: Optional[int] = None,
) -> Optional[MatchResult]:
    """
    First (account, action) pair of ``tx`` that decrypts.

    Returns the MatchResult with ``account_index`` set, or None when no
    account below ``max_accounts`` (IVKSCAN_MAX_ACCOUNTS, default 10)
    owns any action. Accounts whose key material is rejected are skipped.
    """
    if max_accounts is None:
        max_accounts = config.MAX_ACCOUNTS
    if max_accounts < 0:
        raise ValueError(f"max_accounts must be >= 0, got {max_accounts}")

    net = unified.parse_network(network)
    backend = get_backend(backend)
    actions = orchard_actions(tx, txid, height)
    seed = mnemonic_to_seed(phrase)
    if not actions:
        return None

    for account_index in range(max_accounts):
        try:
            viewing_key = viewing_key_for_account(seed, account_index, net, backend, derivation)
        except KeyDerivationFailed:
            logger.debug("Account %d: key material rejected, skipping", account_index)
            continue

        fvk = load_full_viewing_key(viewing_key, backend)
        matches = match_actions(actions, fvk, backend, first_only=True)
        if matches:
            logger.info(
                "Account %d owns action %d", account_index, matches[0].index,
                extra={"account_index": account_index, "action_index": matches[0].index},
            )
            return replace(matches[0], account_index=account_index)

    logger.info("No account in 0..%d owns this transaction", max_accounts - 1)
    return None
