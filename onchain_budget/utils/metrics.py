"""Prometheus metrics definitions"""

from prometheus_client import Counter, Histogram, Gauge


# Provider gateway metrics
gateway_requests = Counter(
    'gateway_requests_total',
    'Outbound provider requests',
    labelnames=['provider', 'outcome']  # success, upstream_error, transport_error
)

gateway_latency = Histogram(
    'gateway_request_latency_seconds',
    'Latency of outbound provider requests',
    labelnames=['provider'],
    buckets=[0.1, 0.25, 0.5, 1, 2, 5, 10, 30]
)

token_balance_failures = Counter(
    'token_balance_failures_total',
    'Token balance fetches skipped after an error',
    labelnames=['chain_id', 'symbol']
)

# Facade metrics
facade_refreshes = Counter(
    'facade_refreshes_total',
    'Read model refreshes',
    labelnames=['entity', 'outcome']  # success, failure, stale
)

linked_bank_accounts = Gauge(
    'linked_bank_accounts',
    'Bank accounts linked in the most recently updated session'
)

# LLM cost & usage tracking
llm_tokens_counter = Counter(
    'llm_tokens_used_total',
    'Total LLM tokens consumed',
    labelnames=['model_name', 'purpose']
)

llm_cost_counter = Counter(
    'llm_cost_dollars_total',
    'Total LLM cost in USD',
    labelnames=['model_name']
)

llm_api_latency = Histogram(
    'llm_api_latency_seconds',
    'Latency of LLM API calls',
    labelnames=['model_name'],
    buckets=[0.5, 1, 2, 5, 10, 30]
)

llm_rate_limit_hits = Counter(
    'llm_rate_limit_hits_total',
    'Number of LLM rate limit errors',
    labelnames=['model_name']
)

# Chat metrics
chat_turns = Counter(
    'chat_turns_total',
    'Completed chat turns',
    labelnames=['outcome']  # reply, fallback, rejected
)

message_persist_failures = Counter(
    'message_persist_failures_total',
    'Chat messages that could not be stored',
    labelnames=['role']
)

# Infrastructure metrics
session_store_healthy = Gauge(
    'session_store_healthy',
    'Whether the session store (Redis) is alive (0/1)'
)
