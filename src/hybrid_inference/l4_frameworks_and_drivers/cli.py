"""CLI entry point for hybrid-inference."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from hybrid_inference import __version__
from hybrid_inference.l1_entities.app_language import AppLanguage
from hybrid_inference.l1_entities.audio import AudioFormat
from hybrid_inference.l1_entities.capability import Capability, ProviderChoice
from hybrid_inference.l1_entities.errors import EngineError, ProviderError
from hybrid_inference.l2_use_cases.utils.retry import with_retry

_CAPABILITIES = [c.value for c in Capability]
_LANGUAGES = [lang.value for lang in AppLanguage]


def _fail(err: Exception) -> None:
    click.echo(f'Error: {err}', err=True)
    sys.exit(1)


def _build_container(ctx: click.Context):
    """Load config and wire the container once per invocation."""
    if 'container' in ctx.obj:
        return ctx.obj['container']

    from pydantic import ValidationError  # noqa: PLC0415 -- deferred: not needed for --help

    from hybrid_inference.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from hybrid_inference.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: not needed for --help
        DependencyContainer,
    )
    from hybrid_inference.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        InfraConfig,
        build_app_config,
    )
    from hybrid_inference.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: not needed for --help
        setup_file_logging,
    )

    try:
        raw = YamlConfigLoader().load_raw(ctx.obj['config_path'])
        config = build_app_config(raw)
        infra = InfraConfig.model_validate(raw)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        _fail(e)

    container = DependencyContainer(config, infra=infra)
    setup_file_logging(container.storage.logs_dir)
    ctx.obj['container'] = container
    return container


async def _run_and_unload(container, coro):
    try:
        return await coro
    finally:
        await container.provider_registry.unload_all()


def _run(container, coro):
    try:
        return asyncio.run(_run_and_unload(container, coro))
    except (ProviderError, EngineError) as e:
        _fail(e)


@click.group()
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to YAML config file.',
)
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, config_path):
    """hybrid-inference -- local and cloud AI capabilities behind one interface."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command()
@click.option('--capability', type=click.Choice(_CAPABILITIES), default=None, help='Only list this capability.')
@click.pass_context
def models(ctx, capability):
    """List catalog models and whether their artifacts are present."""
    container = _build_container(ctx)
    registry = container.model_registry
    cap = Capability(capability) if capability else None
    for model in registry.available_models(cap):
        mark = 'x' if registry.is_downloaded(model) else ' '
        size = f'{model.approximate_size_gb:.2f} GB' if model.approximate_size_gb else '?'
        click.echo(f'[{mark}] {model.capability.value:<16} {model.id:<28} {size:>9}  {registry.download_path(model)}')


@cli.command()
@click.argument('text')
@click.option('--top', default=3, show_default=True, type=click.IntRange(min=1), help='Number of hypotheses.')
@click.pass_context
def detect(ctx, text, top):
    """Detect the language of TEXT."""
    container = _build_container(ctx)
    hypotheses = container.language_detector.detect_with_confidence(text, max_hypotheses=top)
    if not hypotheses:
        click.echo('No verdict (text too short or has no letters).')
        return
    for hyp in hypotheses:
        click.echo(f'{hyp.language.display_name:<10} {hyp.language.iso_code}  {hyp.confidence:.3f}')


@cli.command()
@click.argument('texts', nargs=-1, required=True)
@click.pass_context
def embed(ctx, texts):
    """Print embedding vectors of TEXTS as JSON lines."""
    container = _build_container(ctx)
    provider = container.provider_registry.embedding_provider()
    vectors = _run(container, with_retry(lambda: provider.embed_batch(list(texts))))
    for vector in vectors:
        click.echo(json.dumps([round(v, 6) for v in vector]))


@cli.command()
@click.argument('audio_file', type=click.Path(exists=True, dir_okay=False))
@click.option('-l', '--language', type=click.Choice(_LANGUAGES), default=None, help='Override configured language.')
@click.pass_context
def transcribe(ctx, audio_file, language):
    """Transcribe AUDIO_FILE (wav, mp3, m4a or webm)."""
    from hybrid_inference.l1_entities.transcript import format_timestamp  # noqa: PLC0415 -- deferred: transcribe only
    from hybrid_inference.l2_use_cases.transcribe_audio_use_case import (  # noqa: PLC0415 -- deferred: transcribe only
        TranscribeAudioUseCase,
    )

    path = Path(audio_file)
    try:
        fmt = AudioFormat(path.suffix.lower().lstrip('.'))
    except ValueError:
        _fail(ValueError(f'Unsupported audio format: {path.suffix or "(none)"}'))

    container = _build_container(ctx)
    use_case = TranscribeAudioUseCase(
        provider=container.provider_registry.stt_provider(),
        detector=container.language_detector,
        language=AppLanguage(language) if language else container.config.transcription.language,
    )
    audio = path.read_bytes()
    segments = _run(container, with_retry(lambda: use_case.transcribe(audio, fmt)))
    for seg in segments:
        click.echo(f'[{format_timestamp(seg.start)} → {format_timestamp(seg.end)}] {seg.text}')
    if use_case.language is not None:
        click.echo(f'Language: {use_case.language.display_name}', err=True)


@cli.command()
@click.argument('prompt')
@click.option('-s', '--system', 'system_prompt', default='', help='System prompt.')
@click.option('--max-tokens', type=click.IntRange(min=1), default=None, help='Defaults to the configured value.')
@click.option('--temperature', type=click.FloatRange(0.0, 2.0), default=None, help='Defaults to the configured value.')
@click.pass_context
def generate(ctx, prompt, system_prompt, max_tokens, temperature):
    """Stream a completion for PROMPT."""
    container = _build_container(ctx)
    provider = container.provider_registry.text_generation_provider()
    gen = container.config.generation

    async def stream() -> None:
        async for chunk in provider.generate(
            prompt,
            system_prompt,
            max_tokens or gen.max_tokens,
            gen.temperature if temperature is None else temperature,
        ):
            click.echo(chunk, nl=False)
        click.echo()

    _run(container, stream())


@cli.command()
@click.argument('image_file', type=click.Path(exists=True, dir_okay=False))
@click.option('-p', '--prompt', default=None, help='Ask about the image instead of extracting its text.')
@click.pass_context
def ocr(ctx, image_file, prompt):
    """Extract text from IMAGE_FILE, or answer --prompt about it."""
    container = _build_container(ctx)
    provider = container.provider_registry.vision_provider()
    data = Path(image_file).read_bytes()

    async def run() -> None:
        if prompt is None:
            click.echo(await with_retry(lambda: provider.extract_text(data)))
            return
        async for chunk in provider.analyze_image(data, prompt):
            click.echo(chunk, nl=False)
        click.echo()

    _run(container, run())


@cli.group()
def provider():
    """Show or change the provider used per capability."""


@provider.command('show')
@click.pass_context
def provider_show(ctx):
    container = _build_container(ctx)
    registry = container.provider_registry
    for cap in Capability:
        chosen = container.settings.choice_for(cap)
        effective = registry.effective_choice(cap)
        note = '' if chosen is effective else f' (falls back from {chosen.value})'
        cloud = 'yes' if registry.has_cloud(cap) else 'no'
        click.echo(f'{cap.value:<16} {effective.value}{note}  cloud available: {cloud}')


@provider.command('set')
@click.argument('capability', type=click.Choice(_CAPABILITIES))
@click.argument('choice', type=click.Choice([c.value for c in ProviderChoice]))
@click.pass_context
def provider_set(ctx, capability, choice):
    container = _build_container(ctx)
    cap, selected = Capability(capability), ProviderChoice(choice)
    container.settings.set_choice(cap, selected)
    if selected is ProviderChoice.CLOUD and not container.provider_registry.has_cloud(cap):
        click.echo(f'Warning: no cloud provider configured for {capability}; local will be used.', err=True)
    click.echo(f'{capability}: {choice}')
