#!/usr/bin/env python3
"""
Visitor Persona Demo

Demonstrates the complete pipeline for a few scripted visitors:
1. Fold tracking events into aggregated behavior
2. Vectorize behavior
3. Match against persona centroids
4. Classify through the hybrid classifier (heuristic only)
5. Select persona content

Usage:
    python demo.py [persona]
    python demo.py  # Runs every scripted visitor
"""

import asyncio
import json
import sys
import time

from visitor_persona.classifiers.hybrid_classifier import (
    HybridPersonaClassifier,
    fingerprint_session,
)
from visitor_persona.models.behavior_event import (
    BehaviorEvent,
    BehaviorEventData,
    BehaviorEventType,
)
from visitor_persona.models.behavior_vector import DIMENSION_NAMES
from visitor_persona.personalization.content_selector import ContentSelector
from visitor_persona.scoring.behavior_vectorizer import BehaviorVectorizer
from visitor_persona.scoring.centroid_classifier import CentroidClassifier
from visitor_persona.storage.session_store import InMemorySessionStore
from visitor_persona.tracking.event_aggregator import EventAggregator


def _event(session_id, event_type, **data):
    return BehaviorEvent(
        session_id=session_id,
        timestamp=int(time.time() * 1000),
        type=event_type,
        data=BehaviorEventData(**data),
    )


def scripted_visitors():
    """Event streams for a few recognizable visitor types."""
    return {
        "recruiter": [
            ("time", dict(time_on_page=45_000, path="/")),
            ("scroll", dict(depth=20, max_depth=20)),
            ("click", dict(element="resume-download", section="hero")),
            ("hover", dict(keywords=["experience", "skills"])),
            ("navigation", dict(from_path="/", to_path="/resume", sequence=["/", "/resume"])),
        ],
        "engineer": [
            ("time", dict(time_on_page=240_000, path="/")),
            ("scroll", dict(depth=90, max_depth=90)),
            ("click", dict(element="code-sample-1", section="code")),
            ("click", dict(element="code-sample-2", section="code")),
            ("click", dict(element="project-card", section="projects")),
            ("hover", dict(keywords=["typescript", "api", "github"])),
            ("navigation", dict(
                from_path="/projects", to_path="/architecture",
                sequence=["/", "/projects", "/architecture"],
            )),
        ],
        "gamer": [
            ("time", dict(time_on_page=120_000, path="/")),
            ("scroll", dict(depth=60, max_depth=60)),
            ("click", dict(element="game-demo-play")),
            ("click", dict(element="game-demo-replay")),
            ("interaction", dict(interaction_type="animation")),
            ("navigation", dict(from_path="/", to_path="/games", sequence=["/", "/games"])),
        ],
    }


async def run_visitor(name: str, raw_events, store: InMemorySessionStore) -> dict:
    """Run one scripted visitor through the pipeline and print each step."""
    print()
    print("=" * 50)
    print(f"Visitor: {name}")
    print("=" * 50)

    session_key = f"demo_{name}"
    events = [
        _event(session_key, BehaviorEventType(event_type), **data)
        for event_type, data in raw_events
    ]

    # =========================================================================
    # Step 1: Aggregate events
    # =========================================================================
    print()
    print("[1] Aggregating events...")

    session = store.create_session(fingerprint_session(session_key))
    store.append_events(session.id, events)
    behavior = EventAggregator().apply(store.get_behavior(session.id), events)
    store.save_behavior(behavior)

    print(f"    -> {len(events)} events")
    print(f"    -> Time on homepage: {behavior.time_on_homepage:.0f}s")
    print(f"    -> Scroll depth: {behavior.scroll_depth:.0%}")
    print(f"    -> Navigation: {' -> '.join(behavior.navigation_path)}")

    # =========================================================================
    # Step 2: Vectorize
    # =========================================================================
    print()
    print("[2] Vectorizing behavior...")

    vector = BehaviorVectorizer().vectorize(behavior)
    for dimension, value in zip(DIMENSION_NAMES, vector.to_list()):
        if value > 0:
            print(f"    -> {dimension}: {value:.2f}")

    # =========================================================================
    # Step 3: Match centroids
    # =========================================================================
    print()
    print("[3] Matching persona centroids...")

    match = CentroidClassifier().classify(vector)
    for i, (persona, similarity) in enumerate(match.closest()):
        marker = " (BEST)" if i == 0 else ""
        print(f"    -> {persona.value}: {similarity:.3f}{marker}")

    # =========================================================================
    # Step 4: Classify
    # =========================================================================
    print()
    print("[4] Classifying...")

    classifier = HybridPersonaClassifier(store=store)
    result = await classifier.classify(session_key, use_ai=False)
    print(f"    -> {result.classification}")
    print(f"    -> Source: {result.source.value}")

    # =========================================================================
    # Step 5: Select content
    # =========================================================================
    print()
    print("[5] Selecting content...")

    content = ContentSelector().select(
        result.classification, navigation_history=behavior.navigation_path
    )
    print(f"    -> Sections: {', '.join(content['sections'])}")
    print(f"    -> Tone: {content['profile']['tone']}")

    return result.to_dict()


def main(only: str = None):
    """Run the demo pipeline."""
    print("=" * 50)
    print("Visitor Persona Demo")
    print("=" * 50)

    visitors = scripted_visitors()
    if only is not None:
        if only not in visitors:
            print(f"Error: No scripted visitor named {only!r}")
            print(f"Available: {', '.join(visitors)}")
            return 1
        visitors = {only: visitors[only]}

    store = InMemorySessionStore()
    results = {}
    for name, raw_events in visitors.items():
        results[name] = asyncio.run(run_visitor(name, raw_events, store))

    # =========================================================================
    # Summary
    # =========================================================================
    print()
    print("=" * 50)
    print("Classification Summary (JSON):")
    print("-" * 30)
    summary = {
        name: {
            "classification": payload["classification"],
            "source": payload["source"],
        }
        for name, payload in results.items()
    }
    print(json.dumps(summary, indent=2))

    return 0


if __name__ == "__main__":
    persona = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(main(persona))
