"""
updater/connectors/rpc_connector.py

JSON-RPC connector for the ledger's HTTP endpoint.

Each public call performs a single HTTP attempt; retries belong to the caller
(RetryExecutor) so that fetch and submit keep independent budgets.
"""

from __future__ import annotations

import base64
import itertools
import logging
import time
from typing import Any, Callable

import requests
from solders.hash import Hash, ParseHashError

from ledger.address import Address
from ledger.signer import Signer
from ledger.transaction import Instruction, build_signed_transaction
from updater.config import UpdaterSettings
from updater.connectors.base import (
    ConfirmationTimeoutError,
    RpcRequestError,
    TransactionFailedError,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class LedgerRpcConnector:
    """
    Minimal ledger client: account reads, balance reads and transaction submits.
    """

    def __init__(
        self,
        *,
        rpc_url: str,
        timeout_seconds: float = 30.0,
        rate_limit_per_second: float = 10.0,
        commitment: str = "confirmed",
        confirm_timeout_seconds: float = 60.0,
        confirm_poll_interval_seconds: float = 0.5,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if commitment not in _COMMITMENT_RANK:
            raise ValueError(f"Unsupported commitment '{commitment}'.")
        self._rpc_url = rpc_url
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds
        self._commitment = commitment
        self._confirm_timeout_seconds = confirm_timeout_seconds
        self._confirm_poll_interval_seconds = confirm_poll_interval_seconds
        self._sleep = sleep
        self._clock = clock
        self._min_request_interval_seconds = (
            1.0 / rate_limit_per_second if rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float | None = None
        self._request_ids = itertools.count(1)

    @classmethod
    def from_settings(cls, settings: UpdaterSettings) -> "LedgerRpcConnector":
        return cls(
            rpc_url=settings.rpc_url,
            timeout_seconds=settings.rpc_timeout_seconds,
            rate_limit_per_second=settings.rpc_rate_limit_per_second,
            commitment=settings.rpc_commitment,
            confirm_timeout_seconds=settings.confirm_timeout_seconds,
        )

    def fetch_raw(self, address: Address) -> bytes | None:
        result = self._call(
            "getAccountInfo",
            [str(address), {"encoding": "base64", "commitment": self._commitment}],
        )
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            return None

        data = value.get("data")
        if not isinstance(data, list) or len(data) != 2 or data[1] != "base64":
            raise RpcRequestError(f"getAccountInfo returned unexpected data encoding for {address}.")
        try:
            return base64.b64decode(data[0], validate=True)
        except ValueError as exc:
            raise RpcRequestError(f"getAccountInfo returned invalid base64 for {address}.") from exc

    def get_balance(self, address: Address) -> int:
        """
        Return the account balance in lamports.
        """

        result = self._call("getBalance", [str(address), {"commitment": self._commitment}])
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, int):
            raise RpcRequestError("getBalance returned an unexpected payload.")
        return value

    def get_latest_blockhash(self) -> Hash:
        result = self._call("getLatestBlockhash", [{"commitment": self._commitment}])
        try:
            blockhash = result["value"]["blockhash"]
            return Hash.from_string(blockhash)
        except (KeyError, TypeError, ValueError, ParseHashError) as exc:
            raise RpcRequestError("getLatestBlockhash returned an unexpected payload.") from exc

    def submit(self, instruction: Instruction, signer: Signer) -> str:
        """
        Sign and send one instruction, then wait for the configured commitment.
        """

        transaction = build_signed_transaction(instruction, signer, self.get_latest_blockhash())
        expected_id = str(transaction.signatures[0])
        wire = bytes(transaction)

        signature_id = self._call(
            "sendTransaction",
            [
                base64.b64encode(wire).decode("ascii"),
                {
                    "encoding": "base64",
                    "skipPreflight": False,
                    "preflightCommitment": self._commitment,
                },
            ],
        )
        if not isinstance(signature_id, str):
            raise RpcRequestError("sendTransaction returned an unexpected payload.")
        if signature_id != expected_id:
            logger.warning(
                "sendTransaction returned a different signature expected=%s got=%s",
                expected_id,
                signature_id,
            )

        self._wait_for_confirmation(signature_id)
        return signature_id

    def _wait_for_confirmation(self, signature_id: str) -> None:
        deadline = self._clock() + self._confirm_timeout_seconds
        target_rank = _COMMITMENT_RANK[self._commitment]

        while True:
            result = self._call(
                "getSignatureStatuses",
                [[signature_id], {"searchTransactionHistory": False}],
            )
            values = result.get("value") if isinstance(result, dict) else None
            status = values[0] if isinstance(values, list) and values else None

            if isinstance(status, dict):
                if status.get("err") is not None:
                    raise TransactionFailedError(
                        f"Transaction {signature_id} failed: {status['err']}"
                    )
                reached = _COMMITMENT_RANK.get(status.get("confirmationStatus") or "", -1)
                if reached >= target_rank:
                    return

            if self._clock() >= deadline:
                raise ConfirmationTimeoutError(
                    f"Transaction {signature_id} not {self._commitment} after "
                    f"{self._confirm_timeout_seconds:.0f}s."
                )
            self._sleep(self._confirm_poll_interval_seconds)

    def _call(self, method: str, params: list[Any]) -> Any:
        """
        POST one JSON-RPC request and return its ``result``.
        """

        self._apply_rate_limit()
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        try:
            response = self._session.post(
                self._rpc_url,
                json=payload,
                timeout=self._timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise RpcRequestError(f"{method}: transport error: {exc}") from exc

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise RpcRequestError(
                f"{method}: retryable HTTP status {response.status_code}",
                code=response.status_code,
            )
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            logger.error(
                "RPC request failed method=%s status=%s url=%s",
                method,
                response.status_code,
                self._rpc_url,
            )
            raise RpcRequestError(
                f"{method}: HTTP status {response.status_code}",
                code=response.status_code,
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise RpcRequestError(f"{method}: response was not valid JSON.") from exc

        if not isinstance(body, dict):
            raise RpcRequestError(f"{method}: response was not a JSON-RPC object.")
        error = body.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RpcRequestError(f"{method}: RPC error {code}: {message}", code=code)
        if "result" not in body:
            raise RpcRequestError(f"{method}: response had no result.")
        return body["result"]

    def _apply_rate_limit(self) -> None:
        """
        Enforce minimum interval between outbound requests.
        """

        if self._min_request_interval_seconds <= 0:
            return

        now = self._clock()
        if self._last_request_monotonic is not None:
            remaining = self._min_request_interval_seconds - (now - self._last_request_monotonic)
            if remaining > 0:
                self._sleep(remaining)
        self._last_request_monotonic = self._clock()
