"""
Example documents for manual inspection and testing.

Development/testing only: 5 summaries, 3 assessments and 9 events
(7 completed, 1 processing, 1 failed with a stack trace).

Timestamps are offsets from an anchor (default: now) so the 90-day TTL index
does not sweep the seeded events right after loading.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from src.db.schemas import ASSESSMENT_COLLECTION, EVENT_COLLECTION, SUMMARY_COLLECTION
from src.domain.models import (
    MaterialAssessment,
    MaterialEvent,
    MaterialSummary,
    Question,
    QuestionOption,
    SummaryMetadata,
    TokenUsage,
    utcnow,
)

MATERIAL_IDS = [
    "550e8400-e29b-41d4-a716-446655440000",  # MongoDB intro
    "650e8400-e29b-41d4-a716-446655440001",  # Clean Architecture
    "750e8400-e29b-41d4-a716-446655440002",  # Go best practices
    "850e8400-e29b-41d4-a716-446655440003",  # Microservices
    "950e8400-e29b-41d4-a716-446655440004",  # Design patterns
]
FAILED_MATERIAL_ID = "a50e8400-e29b-41d4-a716-446655440009"
DELETED_MATERIAL_ID = "c80e8400-e29b-41d4-a716-446655440010"

USER_IDS = [
    "123e4567-e89b-12d3-a456-426614174000",
    "223e4567-e89b-12d3-a456-426614174001",
    "323e4567-e89b-12d3-a456-426614174002",
]

# Seed timeline spans 6.5 hours; the anchor sits just after the last event
SEED_WINDOW = timedelta(hours=7)


def _mc_options(prefix: str, texts: list[str], correct: int) -> list[QuestionOption]:
    return [
        QuestionOption(id=f"opt-{i}{prefix}", text=text, is_correct=(i == correct), order=i)
        for i, text in enumerate(texts, start=1)
    ]


def build_summaries(base: datetime) -> list[MaterialSummary]:
    def at(minutes: int) -> dict[str, datetime]:
        ts = base + timedelta(minutes=minutes)
        return {"created_at": ts, "updated_at": ts}

    return [
        MaterialSummary.create(
            MATERIAL_IDS[0],
            "Este material introduce los conceptos fundamentales de MongoDB, una base de datos NoSQL "
            "orientada a documentos. Se exploran las diferencias clave con bases de datos relacionales "
            "tradicionales, destacando la flexibilidad del modelo de documentos BSON y las ventajas de "
            "escalabilidad horizontal. El contenido cubre operaciones CRUD básicas, diseño de schemas "
            "efectivos, y casos de uso apropiados para aplicaciones modernas que requieren alta "
            "concurrencia y datos semi-estructurados.",
            [
                "MongoDB es una base de datos NoSQL orientada a documentos que usa BSON",
                "Ofrece escalabilidad horizontal mediante sharding automático",
                "No requiere schema fijo, permitiendo evolución ágil del modelo de datos",
                "Soporta transacciones ACID multi-documento desde la versión 4.0",
                "Ideal para aplicaciones con alta concurrencia y datos semi-estructurados",
                "Incluye aggregation pipeline potente para análisis de datos complejos",
            ],
            language="es",
            ai_model="gpt-4",
            processing_time_ms=2340,
            token_usage=TokenUsage(prompt_tokens=850, completion_tokens=120, total_tokens=970),
            metadata=SummaryMetadata(source_length=4500, has_images=True),
            **at(0),
        ),
        MaterialSummary.create(
            MATERIAL_IDS[1],
            "Clean Architecture es un patrón arquitectónico que promueve la separación de "
            "responsabilidades mediante capas bien definidas: Dominio, Aplicación e Infraestructura. "
            "El núcleo de negocio permanece independiente de frameworks, bases de datos y detalles de "
            "implementación. Esta arquitectura facilita el testing, mejora la mantenibilidad y permite "
            "evolucionar componentes de forma independiente.",
            [
                "Separación estricta entre lógica de negocio e infraestructura",
                "Dependency Inversion: las dependencias apuntan hacia el dominio",
                "Facilita testing mediante inyección de dependencias",
                "Reduce acoplamiento y mejora cohesión del código",
                "Permite cambiar frameworks sin afectar el core de negocio",
            ],
            language="es",
            ai_model="gpt-4-turbo",
            processing_time_ms=1890,
            token_usage=TokenUsage(prompt_tokens=720, completion_tokens=105, total_tokens=825),
            metadata=SummaryMetadata(source_length=3800, has_images=False),
            **at(30),
        ),
        MaterialSummary.create(
            MATERIAL_IDS[2],
            "This material covers best practices for Go development, including effective error "
            "handling patterns, proper use of goroutines and channels, and idiomatic code structures. "
            "Key topics include context propagation for cancellation, table-driven tests, interface "
            "design principles, and common pitfalls to avoid.",
            [
                "Always handle errors explicitly, never ignore them",
                "Use context.Context for cancellation and deadlines",
                "Prefer composition via small interfaces",
                "Table-driven tests for comprehensive test coverage",
                "Avoid goroutine leaks by ensuring proper cleanup",
                "Follow effective naming conventions and package structure",
            ],
            language="en",
            ai_model="gpt-4o",
            processing_time_ms=2100,
            token_usage=TokenUsage(prompt_tokens=950, completion_tokens=115, total_tokens=1065),
            metadata=SummaryMetadata(source_length=5200, has_images=True),
            **at(90),
        ),
        MaterialSummary.create(
            MATERIAL_IDS[3],
            "Los microservicios son un estilo arquitectónico que estructura una aplicación como una "
            "colección de servicios pequeños, autónomos y débilmente acoplados. Cada servicio se enfoca "
            "en una capacidad de negocio específica, puede desplegarse independientemente y comunicarse "
            "mediante APIs bien definidas.",
            [
                "Servicios pequeños, autónomos y enfocados en una sola responsabilidad",
                "Despliegue independiente permite releases frecuentes",
                "Comunicación mediante APIs REST, gRPC o mensajería asíncrona",
                "Base de datos por servicio para evitar acoplamiento de datos",
                "Requiere infraestructura robusta (service mesh, observability)",
                "Trade-off: mayor complejidad operacional vs escalabilidad",
            ],
            language="es",
            ai_model="gpt-4",
            processing_time_ms=2650,
            token_usage=TokenUsage(prompt_tokens=1100, completion_tokens=135, total_tokens=1235),
            metadata=SummaryMetadata(source_length=6000, has_images=True),
            **at(150),
        ),
        MaterialSummary.create(
            MATERIAL_IDS[4],
            "Design Patterns são soluções reutilizáveis para problemas comuns no desenvolvimento de "
            "software. Este material cobre os padrões clássicos do Gang of Four: criacionais, "
            "estruturais e comportamentais. Cada padrão é explicado com exemplos práticos, indicando "
            "quando aplicá-los e quais trade-offs considerar.",
            [
                "Padrões criacionais controlam a criação de objetos",
                "Padrões estruturais facilitam composição de classes e objetos",
                "Padrões comportamentais gerenciam algoritmos e responsabilidades",
                "Singleton garante instância única mas dificulta testes",
                "Strategy permite trocar algoritmos dinamicamente",
                "Observer implementa comunicação desacoplada entre objetos",
            ],
            language="pt",
            ai_model="gpt-4-turbo",
            processing_time_ms=2200,
            token_usage=TokenUsage(prompt_tokens=880, completion_tokens=110, total_tokens=990),
            metadata=SummaryMetadata(source_length=4200, has_images=False),
            **at(210),
        ),
    ]


def build_assessments(base: datetime) -> list[MaterialAssessment]:
    def at(minutes: int) -> dict[str, datetime]:
        ts = base + timedelta(minutes=minutes, seconds=5)
        return {"created_at": ts, "updated_at": ts}

    mongodb_quiz = [
        Question(
            id="f3e4d5c6-b7a8-4c3d-9e2f-1a0b9c8d7e6f",
            text="¿Qué es MongoDB?",
            type="multiple_choice",
            difficulty="easy",
            points=5,
            options=_mc_options(
                "a",
                [
                    "Una base de datos relacional como MySQL",
                    "Una base de datos NoSQL orientada a documentos",
                    "Un lenguaje de programación",
                    "Un sistema operativo",
                ],
                correct=2,
            ),
            explanation="MongoDB es una base de datos NoSQL que almacena datos en documentos BSON, "
            "permitiendo flexibilidad en el schema y escalabilidad horizontal.",
            bloom_taxonomy_level="remember",
            order=1,
        ),
        Question(
            id="a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d",
            text="MongoDB soporta transacciones ACID multi-documento desde la versión 4.0",
            type="true_false",
            difficulty="medium",
            points=5,
            correct_answer="true",
            explanation="A partir de MongoDB 4.0 se introdujo soporte para transacciones multi-documento ACID.",
            bloom_taxonomy_level="understand",
            order=2,
        ),
        Question(
            id="b2c3d4e5-f6a7-4b8c-9d0e-1f2a3b4c5d6e",
            text="Explica la diferencia entre sharding y replicación en MongoDB",
            type="open",
            difficulty="hard",
            points=10,
            explanation="Sharding distribuye los datos horizontalmente entre servidores para escalar; "
            "la replicación crea copias redundantes para alta disponibilidad.",
            bloom_taxonomy_level="analyze",
            order=3,
        ),
        Question(
            id="c3d4e5f6-a7b8-4c9d-0e1f-2a3b4c5d6e7f",
            text="¿Cuál es el tamaño máximo de un documento BSON en MongoDB?",
            type="multiple_choice",
            difficulty="medium",
            points=5,
            options=_mc_options("b", ["4 MB", "16 MB", "32 MB", "No hay límite"], correct=2),
            explanation="El tamaño máximo de un documento BSON es 16 MB. Para datos más grandes se usa GridFS.",
            bloom_taxonomy_level="remember",
            order=4,
        ),
        Question(
            id="d4e5f6a7-b8c9-4d0e-1f2a-3b4c5d6e7f8a",
            text="Los índices en MongoDB mejoran la performance de lecturas pero pueden ralentizar escrituras",
            type="true_false",
            difficulty="easy",
            points=5,
            correct_answer="true",
            explanation="Cada índice acelera las lecturas pero debe actualizarse en cada escritura.",
            bloom_taxonomy_level="understand",
            order=5,
        ),
    ]

    clean_architecture_quiz = [
        Question(
            id="e5f6a7b8-c9d0-4e1f-2a3b-4c5d6e7f8a9b",
            text="En Clean Architecture, ¿hacia dónde deben apuntar las dependencias?",
            type="multiple_choice",
            difficulty="medium",
            points=10,
            options=_mc_options(
                "c",
                [
                    "Hacia la infraestructura",
                    "Hacia el dominio (núcleo de negocio)",
                    "Hacia la capa de presentación",
                    "No importa la dirección",
                ],
                correct=2,
            ),
            explanation="La inversión de dependencias hace que apunten hacia el dominio, no hacia los detalles.",
            bloom_taxonomy_level="understand",
            order=1,
        ),
        Question(
            id="f6a7b8c9-d0e1-4f2a-3b4c-5d6e7f8a9b0c",
            text="Clean Architecture facilita el testing porque permite inyectar mocks para dependencias externas",
            type="true_false",
            difficulty="easy",
            points=5,
            correct_answer="true",
            explanation="Al depender de abstracciones se pueden inyectar mocks o stubs en las pruebas unitarias.",
            bloom_taxonomy_level="apply",
            order=2,
        ),
        Question(
            id="a7b8c9d0-e1f2-4a3b-4c5d-6e7f8a9b0c1d",
            text="Describe las tres capas principales de Clean Architecture y sus responsabilidades",
            type="open",
            difficulty="hard",
            points=15,
            explanation="Dominio: entidades y reglas de negocio. Aplicación: casos de uso. "
            "Infraestructura: frameworks, bases de datos y APIs externas.",
            bloom_taxonomy_level="analyze",
            order=3,
        ),
    ]

    go_quiz = [
        Question(
            id="b8c9d0e1-f2a3-4b4c-5d6e-7f8a9b0c1d2e",
            text="Which statement about error handling in Go is correct?",
            type="multiple_choice",
            difficulty="easy",
            points=5,
            options=_mc_options(
                "d",
                [
                    "Errors should be ignored if they are unlikely to occur",
                    "Always handle errors explicitly, never ignore them",
                    "Use panic for all error conditions",
                    "Errors are optional in Go",
                ],
                correct=2,
            ),
            explanation="Go favours explicit error handling: every error is checked, never silently ignored.",
            bloom_taxonomy_level="remember",
            order=1,
        ),
        Question(
            id="c9d0e1f2-a3b4-4c5d-6e7f-8a9b0c1d2e3f",
            text="context.Context should be passed as the first parameter to functions",
            type="true_false",
            difficulty="medium",
            points=5,
            correct_answer="true",
            explanation="By convention context.Context is the first parameter, typically named ctx.",
            bloom_taxonomy_level="understand",
            order=2,
        ),
    ]

    return [
        MaterialAssessment.from_questions(
            MATERIAL_IDS[0],
            "Quiz: Fundamentos de MongoDB",
            mongodb_quiz,
            ai_model="gpt-4",
            description="Evaluación sobre conceptos básicos de MongoDB y bases de datos NoSQL",
            passing_score=18,
            time_limit_minutes=20,
            processing_time_ms=3500,
            **at(0),
        ),
        MaterialAssessment.from_questions(
            MATERIAL_IDS[1],
            "Quiz: Clean Architecture Principles",
            clean_architecture_quiz,
            ai_model="gpt-4-turbo",
            description="Evaluación sobre principios y conceptos de Clean Architecture",
            passing_score=20,
            time_limit_minutes=15,
            processing_time_ms=2800,
            **at(30),
        ),
        MaterialAssessment.from_questions(
            MATERIAL_IDS[2],
            "Quiz: Go Best Practices",
            go_quiz,
            ai_model="gpt-4o",
            description="Assessment on idiomatic Go code and common patterns",
            passing_score=7,
            time_limit_minutes=10,
            processing_time_ms=2100,
            **at(90),
        ),
    ]


def _upload_payload(material_id: str, author_id: str, s3_key: str, language: str, ts: datetime) -> dict[str, Any]:
    return {
        "event_type": "material_uploaded",
        "material_id": material_id,
        "author_id": author_id,
        "s3_key": s3_key,
        "preferred_language": language,
        "timestamp": ts.isoformat(),
    }


def build_events(base: datetime) -> list[MaterialEvent]:
    def ts(minutes: int, seconds: int = 0) -> datetime:
        return base + timedelta(minutes=minutes, seconds=seconds)

    uploads = [
        # (material, user, key, language, minute offset, latency ms, seconds to finish)
        (MATERIAL_IDS[0], USER_IDS[0], "materials/mongodb-intro.pdf", "es", 0, 5840, 6),
        (MATERIAL_IDS[1], USER_IDS[1], "materials/clean-architecture.pdf", "es", 30, 4750, 5),
        (MATERIAL_IDS[2], USER_IDS[2], "materials/go-best-practices.pdf", "en", 90, 6100, 6),
    ]
    events = [
        MaterialEvent(
            event_type="material_uploaded",
            event_id=f"evt-upload-{n}",
            material_id=material_id,
            user_id=user_id,
            payload=_upload_payload(material_id, user_id, key, language, ts(offset, -15)),
            status="completed",
            processing_time_ms=latency,
            processed_at=ts(offset, finish),
            created_at=ts(offset),
        )
        for n, (material_id, user_id, key, language, offset, latency, finish) in enumerate(uploads, start=1)
    ]

    events += [
        MaterialEvent(
            event_type="material_uploaded",
            event_id="evt-upload-4",
            material_id=MATERIAL_IDS[3],
            user_id=USER_IDS[0],
            payload=_upload_payload(MATERIAL_IDS[3], USER_IDS[0], "materials/microservices.pdf", "es", ts(150, -15)),
            status="processing",
            processing_time_ms=3200,
            created_at=ts(150),
        ),
        MaterialEvent(
            event_type="material_uploaded",
            event_id="evt-upload-5",
            material_id=FAILED_MATERIAL_ID,
            user_id=USER_IDS[1],
            payload=_upload_payload(FAILED_MATERIAL_ID, USER_IDS[1], "materials/corrupted.pdf", "es", ts(180)),
            status="failed",
            error_message="failed to extract PDF text: file corrupted or invalid format",
            error_stack=(
                "Traceback (most recent call last):\n"
                '  File "/app/worker/processors/material_uploaded.py", line 56, in process\n'
                "    text = self.extractor.extract(pdf_bytes)\n"
                '  File "/app/worker/pdf/extractor.py", line 45, in extract\n'
                "    raise ExtractionError(\"file corrupted or invalid format\")\n"
                "ExtractionError: file corrupted or invalid format"
            ),
            retry_count=3,
            processing_time_ms=1200,
            processed_at=ts(180, 8),
            created_at=ts(180),
        ),
        MaterialEvent(
            event_type="assessment_attempt",
            event_id="evt-attempt-1",
            material_id=MATERIAL_IDS[0],
            user_id=USER_IDS[2],
            payload={
                "event_type": "assessment_attempt",
                "material_id": MATERIAL_IDS[0],
                "user_id": USER_IDS[2],
                "answers": {
                    "f3e4d5c6-b7a8-4c3d-9e2f-1a0b9c8d7e6f": "opt-2a",
                    "a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d": "true",
                },
                "score": 85.5,
                "timestamp": ts(225).isoformat(),
            },
            status="completed",
            processing_time_ms=340,
            processed_at=ts(225, 1),
            created_at=ts(225),
        ),
        MaterialEvent(
            event_type="student_enrolled",
            event_id="evt-enrolled-1",
            user_id=USER_IDS[0],
            payload={
                "event_type": "student_enrolled",
                "student_id": USER_IDS[0],
                "unit_id": "423e4567-e89b-12d3-a456-426614174000",
                "timestamp": ts(270).isoformat(),
            },
            status="completed",
            processing_time_ms=120,
            processed_at=ts(270, 1),
            created_at=ts(270),
        ),
        MaterialEvent(
            event_type="material_deleted",
            event_id="evt-deleted-1",
            material_id=DELETED_MATERIAL_ID,
            payload={
                "event_type": "material_deleted",
                "material_id": DELETED_MATERIAL_ID,
                "timestamp": ts(330).isoformat(),
            },
            status="completed",
            processing_time_ms=850,
            processed_at=ts(330, 1),
            created_at=ts(330),
        ),
        MaterialEvent(
            event_type="material_reprocess",
            event_id="evt-reprocess-1",
            material_id=MATERIAL_IDS[0],
            user_id=USER_IDS[0],
            payload={
                **_upload_payload(MATERIAL_IDS[0], USER_IDS[0], "materials/mongodb-intro.pdf", "es", ts(390)),
                "event_type": "material_reprocess",
            },
            status="completed",
            processing_time_ms=5200,
            processed_at=ts(390, 6),
            created_at=ts(390),
        ),
    ]
    return events


def build_seed_documents(anchor: datetime | None = None) -> dict[str, list[dict[str, Any]]]:
    """
    Build the seed batches keyed by collection name.

    Args:
        anchor: Reference time; the seeded timeline ends shortly before it

    Returns:
        {collection_name: [document, ...]} in insertion order
    """
    base = (anchor or utcnow()) - SEED_WINDOW
    return {
        SUMMARY_COLLECTION: [s.to_document() for s in build_summaries(base)],
        ASSESSMENT_COLLECTION: [a.to_document() for a in build_assessments(base)],
        EVENT_COLLECTION: [e.to_document() for e in build_events(base)],
    }
