"""
Configuration context for the DOI monitoring system.

This module defines the data structures that hold configuration parameters.
MonitoringContext is the process-wide view produced from the command line and
the environment; ProbeConfig, AlertConfig and CycleConfig are the explicit,
per-component slices handed to each part of the engine so that no component
reads ambient state.
"""

from typing import NamedTuple, Tuple

from doi_monitor.retry import RetryPolicy


class ProbeConfig(NamedTuple):
    """
    Settings for checking a single identifier.

    Attributes:
        user_agent: Value of the User-Agent header sent with every probe.
        timeout_ms: Total timeout of one HTTP request, in milliseconds.
        max_retries: Additional attempts after a network error or timeout.
        retry_delay_ms: Fixed pause between attempts, in milliseconds.
        follow_redirects: Whether HTTP redirects are followed.
        resolver_base_url: Prefix that turns an identifier into a URL.
    """

    user_agent: str = "DOI-Checker/1.0"
    timeout_ms: int = 10000
    max_retries: int = 3
    retry_delay_ms: int = 1000
    follow_redirects: bool = True
    resolver_base_url: str = "https://doi.org/"

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.max_retries, retry_delay_ms=self.retry_delay_ms)


class AlertConfig(NamedTuple):
    """
    Settings for the outbound alert.

    Attributes:
        enabled: When False the alert is only logged (dry-run).
        endpoint_url: The HTTP endpoint that receives {"content": ...} posts.
        auth_token: Bearer token for the endpoint.
        max_message_length: Hard upper bound on the alert text length.
        timeout_ms: Total timeout of one POST, in milliseconds.
        max_retries: Additional attempts after a failed delivery.
        retry_delay_ms: Fixed pause between attempts, in milliseconds.
        resolver_base_url: Prefix used to render identifier links in the message.
    """

    enabled: bool = False
    endpoint_url: str = ""
    auth_token: str = ""
    max_message_length: int = 500
    timeout_ms: int = 10000
    max_retries: int = 3
    retry_delay_ms: int = 1000
    resolver_base_url: str = "https://doi.org/"

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.max_retries, retry_delay_ms=self.retry_delay_ms)


class CycleConfig(NamedTuple):
    """
    Settings for one pass over the monitored set.

    Attributes:
        concurrency: Number of probes allowed in flight at once.
        cycle_budget_seconds: Time after which unstarted checks are skipped;
            0 disables the budget.
    """

    concurrency: int = 1
    cycle_budget_seconds: float = 0


class MonitoringContext(NamedTuple):
    """
    A data structure containing all configuration parameters for the monitoring system.

    This class is immutable and provides a type-safe way to pass configuration
    throughout the application. It is created by parsing command-line arguments
    and environment variables.

    Attributes:
        dsn: Database connection string for PostgreSQL.
        worker_id: Unique identifier for this runner instance.
        logging_type: Type of logging configuration to use (dev, prod, or custom).
        logging_config_file: Path to custom logging configuration file (if logging_type is 'custom').
        db_pool_size: Maximum number of connections in the database connection pool.
        mode: What the process does: once, schedule or report.
        identifiers: A fixed monitoring list; when empty the list is read from the database.
        check_interval: Seconds between two cycles in schedule mode.
        worker_number: Number of concurrent probe tasks per cycle.
        cycle_budget: Overall cycle budget in seconds, 0 for none.
        resolver_base_url: Prefix that turns an identifier into a URL.
        user_agent: User-Agent header sent with every probe.
        probe_timeout_ms: Timeout of one probe request, in milliseconds.
        probe_max_retries: Additional probe attempts after a network error.
        probe_retry_delay_ms: Pause between probe attempts, in milliseconds.
        follow_redirects: Whether probes follow HTTP redirects.
        alert_enabled: Whether alerts are actually posted.
        alert_endpoint_url: The alert endpoint.
        alert_auth_token: Bearer token for the alert endpoint.
        alert_max_message_length: Maximum alert length.
        alert_timeout_ms: Timeout of one alert post, in milliseconds.
        alert_max_retries: Additional alert attempts after a failure.
        alert_retry_delay_ms: Pause between alert attempts, in milliseconds.
    """

    dsn: str
    worker_id: str
    logging_type: str
    logging_config_file: str
    db_pool_size: int = 5
    mode: str = "once"
    identifiers: Tuple[str, ...] = ()
    check_interval: int = 86400
    worker_number: int = 1
    cycle_budget: float = 0
    resolver_base_url: str = "https://doi.org/"
    user_agent: str = "DOI-Checker/1.0"
    probe_timeout_ms: int = 10000
    probe_max_retries: int = 3
    probe_retry_delay_ms: int = 1000
    follow_redirects: bool = True
    alert_enabled: bool = False
    alert_endpoint_url: str = ""
    alert_auth_token: str = ""
    alert_max_message_length: int = 500
    alert_timeout_ms: int = 10000
    alert_max_retries: int = 3
    alert_retry_delay_ms: int = 1000

    def probe_config(self) -> ProbeConfig:
        return ProbeConfig(
            user_agent=self.user_agent,
            timeout_ms=self.probe_timeout_ms,
            max_retries=self.probe_max_retries,
            retry_delay_ms=self.probe_retry_delay_ms,
            follow_redirects=self.follow_redirects,
            resolver_base_url=self.resolver_base_url,
        )

    def alert_config(self) -> AlertConfig:
        return AlertConfig(
            enabled=self.alert_enabled,
            endpoint_url=self.alert_endpoint_url,
            auth_token=self.alert_auth_token,
            max_message_length=self.alert_max_message_length,
            timeout_ms=self.alert_timeout_ms,
            max_retries=self.alert_max_retries,
            retry_delay_ms=self.alert_retry_delay_ms,
            resolver_base_url=self.resolver_base_url,
        )

    def cycle_config(self) -> CycleConfig:
        return CycleConfig(concurrency=self.worker_number, cycle_budget_seconds=self.cycle_budget)
