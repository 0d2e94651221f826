"""
Batch update checks: fetch every dependency concurrently, then resolve.
"""

from __future__ import annotations

import logging
import sys
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Dict, Iterable, Mapping, Optional

from tqdm import tqdm

from .errors import BatchCancelled, UpdatesError
from .interfaces import RegistryClient
from .models import CheckOutcome, DependencyEntry, PackageMetadata
from .policy import Policy
from .ranges import rewrite_range
from .selector import find_new_version


logger = logging.getLogger(__name__)

UP_TO_DATE_MESSAGE = "All packages are up to date."


class UpdateChecker:
    """Check a set of dependencies against a registry under one policy."""

    def __init__(
        self,
        client: RegistryClient,
        policy: Optional[Policy] = None,
        max_workers: Optional[int] = None,
        progress: bool = False,
        poll_interval: float = 0.1,
    ) -> None:
        """Initialize the checker.

        Args:
            client: Registry client used for metadata fetches
            policy: Update policy; defaults to no flags set
            max_workers: Thread pool size for concurrent fetches
            progress: Show a tqdm progress bar on stderr while fetching
            poll_interval: Seconds between cancellation checks while joining
        """
        self.client = client
        self.policy = policy or Policy()
        self.max_workers = max_workers
        self.progress = progress
        self.poll_interval = poll_interval

    def fetch_all(
        self, names: Iterable[str], cancel: Optional[threading.Event] = None
    ) -> Dict[str, PackageMetadata]:
        """Fetch metadata for all names concurrently.

        Returns only once every fetch has finished. The first failure is
        re-raised and outstanding fetches are cancelled; setting ``cancel``
        does the same with BatchCancelled.
        """
        names = list(names)
        fetched: Dict[str, PackageMetadata] = {}
        if not names:
            return fetched

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="npm-updates")
        futures: Dict[Future, str] = {
            executor.submit(self.client.fetch_package_metadata, name): name for name in names
        }
        pending = set(futures)
        try:
            with tqdm(
                total=len(futures),
                desc="Fetching metadata",
                unit="pkg",
                file=sys.stderr,
                disable=not self.progress,
            ) as pbar:
                while pending:
                    if cancel is not None and cancel.is_set():
                        raise BatchCancelled(
                            f"Cancelled with {len(pending)} of {len(futures)} fetches outstanding"
                        )
                    done, pending = wait(
                        pending, timeout=self.poll_interval, return_when=FIRST_EXCEPTION
                    )
                    for future in done:
                        fetched[futures[future]] = future.result()
                        pbar.update(1)
        finally:
            for future in pending:
                future.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
        return fetched

    def resolve(self, entry: DependencyEntry, metadata: PackageMetadata) -> DependencyEntry:
        """Fill in the new range and info URL of one dependency."""
        policy = self.policy.for_package(entry.name)
        new_version = find_new_version(metadata, policy, entry.old_range)
        if new_version is None:
            logger.debug("No update for %s %s", entry.name, entry.old_range)
            return entry

        entry.new_range = rewrite_range(entry.old_range, new_version)
        if entry.changed:
            entry.info_url = self.client.get_info_url(metadata, new_version)
        return entry

    def check(
        self,
        deps: Mapping[str, DependencyEntry],
        cancel: Optional[threading.Event] = None,
    ) -> CheckOutcome:
        """Run the whole batch and classify the outcome.

        A fetch failure for any dependency makes the outcome an error and no
        results are reported.
        """
        try:
            fetched = self.fetch_all(deps, cancel=cancel)
        except UpdatesError as e:
            logger.debug("Batch aborted: %s", e)
            return CheckOutcome(error=e)

        results: Dict[str, DependencyEntry] = {}
        for name, entry in deps.items():
            resolved = self.resolve(entry, fetched[name])
            if resolved.changed:
                results[name] = resolved

        if not results:
            return CheckOutcome(message=UP_TO_DATE_MESSAGE)
        return CheckOutcome(results=results)
