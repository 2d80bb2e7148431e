"""
Client Factory

Creates region-scoped CloudFormation operations from a shared boto3 session.
"""

import threading
from typing import Dict, Optional

import boto3

from stacksmith.exceptions import ConfigurationError
from stacksmith.services.cloudformation import CloudFormationOperations


class ClientFactory:
    """
    Caches one CloudFormationOperations per region.

    Lookups probe the cache without locking; a miss takes the lock and
    checks again before creating the client.
    """

    def __init__(
        self,
        profile: Optional[str] = None,
        session: Optional[boto3.session.Session] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the factory.

        Args:
            profile: AWS profile name (default credential chain if None)
            session: Pre-built boto3 session (overrides profile)
            stop_event: Shared event that stops every wait loop. The CLI leaves
                it unset; Ctrl-C raises KeyboardInterrupt out of the wait instead.
        """
        self.profile = profile
        self._session = session
        self.stop_event = stop_event or threading.Event()
        self._operations: Dict[str, CloudFormationOperations] = {}
        self._lock = threading.Lock()

    @property
    def session(self) -> boto3.session.Session:
        """The boto3 session (created on first use)."""
        if self._session is None:
            with self._lock:
                if self._session is None:
                    self._session = boto3.session.Session(profile_name=self.profile)
        return self._session

    def get_operations(self, region: str) -> CloudFormationOperations:
        """
        Get CloudFormation operations for a region.

        Args:
            region: AWS region name

        Returns:
            Cached CloudFormationOperations for the region

        Raises:
            ConfigurationError: If region is empty
        """
        if not region:
            raise ConfigurationError("AWS region is required")

        operations = self._operations.get(region)
        if operations is not None:
            return operations

        session = self.session
        with self._lock:
            operations = self._operations.get(region)
            if operations is None:
                client = session.client("cloudformation", region_name=region)
                operations = CloudFormationOperations(
                    client, region=region, stop_event=self.stop_event
                )
                self._operations[region] = operations
        return operations
