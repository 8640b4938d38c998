"""
Core triage pipeline for Inbox Triage.

- models: message and classification records
- heuristics: baseline and additive scorers
- confidence: escalation gate
- merger: final result selection
- ranking: presentation order and filters
- batch_processor: bounded concurrent batches
- orchestrator: the hybrid pipeline and request dispatcher

Submodules are imported directly (`from inboxtriage.core.orchestrator
import Orchestrator`) so the providers package can depend on `models`.
"""
