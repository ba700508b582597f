"""CLI interface for tiffdecode — info and decode subcommands."""

import json
import sys
import time
from pathlib import Path

import click

import tiffdecode
from tiffdecode.document import TiffDocument, collect_tiff_files, open_document
from tiffdecode.errors import TiffError
from tiffdecode.export import EXPORT_FORMATS, check_format, export_image, extension_for
from tiffdecode.log import (
    cli_bold,
    cli_dim,
    cli_error,
    cli_field,
    cli_header,
    cli_info,
    cli_separator,
    cli_success,
    cli_warning,
    configure_logging,
    log_error,
    log_info,
    log_warn,
)
from tiffdecode.tiff.catalog import COMPRESSION_NAMES, PHOTOMETRIC_NAMES

# Longest value preview shown per field in verbose listings
_MAX_PREVIEW = 60


def _preview(entry) -> str:
    text = entry.as_text()
    if len(text) > _MAX_PREVIEW:
        text = text[:_MAX_PREVIEW - 3] + '...'
    return f'{entry.type_name}[{len(entry.values)}] {text}'


def _directory_summary(doc: TiffDocument, index: int) -> dict:
    fields = doc.directories[index]
    compression = fields.first('Compression', 1)
    photometric = fields.first('PhotometricInterpretation')
    return {
        'index': index,
        'offset': fields.offset,
        'width': fields.first('ImageWidth'),
        'height': fields.first('ImageLength'),
        'compression': COMPRESSION_NAMES.get(compression, str(compression)),
        'photometric': PHOTOMETRIC_NAMES.get(photometric, str(photometric)),
        'tags': len(fields),
        'skipped': dict(fields.skipped),
    }


@click.group()
@click.version_option(version=tiffdecode.__version__, prog_name='tiffdecode')
def main():
    """tiffdecode — baseline TIFF decoder.

    Parse TIFF image file directories and decode each one into an
    RGBA raster.
    """
    pass


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--verbose', '-v', is_flag=True, help='List every field in each directory.')
@click.option('--json-out', type=click.Path(), help='Write directory info as JSON to file.')
def info(path, verbose, json_out):
    """Show the directories and fields of TIFF files.

    PATH can be a single file or a directory to search recursively.
    """
    configure_logging(verbose)
    files = collect_tiff_files(Path(path))
    if not files:
        click.echo(f'No TIFF files found in {path}')
        return

    results_json = []
    errors = 0
    for filepath in files:
        click.echo(cli_header(f'{filepath.name}'))
        try:
            doc = open_document(filepath)
        except TiffError as e:
            errors += 1
            click.echo(cli_error(f'  ERROR: {e}'))
            results_json.append({'file': str(filepath), 'error': str(e)})
            continue

        click.echo(f'  Byte order: {doc.byte_order.name}')
        click.echo(f'  Directories: {doc.num_pages}')

        summaries = []
        for index in range(doc.num_pages):
            summary = _directory_summary(doc, index)
            summaries.append(summary)
            click.echo(f'  [{index}] {summary["width"]}x{summary["height"]} '
                       f'{summary["photometric"]}, {summary["compression"]} '
                       + cli_dim(f'({summary["tags"]} tags at offset {summary["offset"]})'))
            for name, reason in summary['skipped'].items():
                click.echo(cli_warning(f'      skipped {name}: {reason}'))
            if verbose:
                for name, entry in doc.directories[index].items():
                    click.echo(cli_field(name, _preview(entry)))

        if json_out:
            results_json.append({
                'file': str(filepath),
                'byte_order': doc.byte_order.name,
                'directories': summaries,
                'fields': [table.as_dict() for table in doc.directories],
            })

    if json_out:
        with open(json_out, 'w') as f:
            json.dump(results_json, f, indent=2)
        click.echo(cli_info(f'Results written to {json_out}'))

    if errors:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--output', '-o', type=click.Path(), required=True,
              help='Directory to write decoded images to.')
@click.option('--page', '-p', type=int, default=None,
              help='Decode only this directory index.')
@click.option('--format', 'fmt', type=click.Choice(EXPORT_FORMATS), default='pam',
              show_default=True, help='Output image format.')
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging.')
@click.option('--log', type=click.Path(), help='Write log to file.')
def decode(path, output, page, fmt, verbose, log):
    """Decode TIFF directories to RGBA images (PAM, PNG or JPEG).

    PATH can be a single file or a directory to process recursively.
    Each directory is written as <name>_p<index>.<ext> in the output folder.
    """
    configure_logging(verbose)
    try:
        check_format(fmt)
    except ImportError as e:
        raise click.ClickException(str(e))
    output_dir = Path(output)
    output_dir.mkdir(parents=True, exist_ok=True)

    log_file = open(log, 'w') if log else None

    def log_msg(msg, line=None):
        click.echo(msg)
        if log_file:
            log_file.write((line or log_info(click.unstyle(msg))) + '\n')
            log_file.flush()

    try:
        failed = _decode_files(Path(path), output_dir, page, fmt, log_msg)
    finally:
        if log_file:
            log_file.close()

    if failed > 0:
        sys.exit(1)


def _decode_files(path: Path, output_dir: Path, page, fmt: str, log_msg) -> int:
    """Decode every TIFF under ``path`` into ``output_dir``. Returns the failure count."""
    files = collect_tiff_files(path)
    if not files:
        log_msg(f'No TIFF files found in {path}')
        return 0

    log_msg(cli_bold(f'tiffdecode v{tiffdecode.__version__} — decoding {len(files)} file(s)...') + '\n')
    t0 = time.time()
    decoded = 0
    failed = 0

    for filepath in files:
        log_msg(cli_header(filepath.name))
        try:
            doc = open_document(filepath)
            if page is not None and not 0 <= page < doc.num_pages:
                failed += 1
                log_msg(cli_error(f'  ERROR: --page {page}: file has {doc.num_pages} directories'),
                        log_error(f'{filepath.name}: --page {page} out of range '
                                  f'({doc.num_pages} directories)'))
                continue
            batch = doc.decode_all(indices=None if page is None else [page])
        except TiffError as e:
            failed += 1
            log_msg(cli_error(f'  ERROR: {e}'), log_error(f'{filepath.name}: {e}'))
            continue

        for result in batch.results:
            if not result.ok:
                failed += 1
                log_msg(cli_error(f'  [{result.index}] {result.error_kind}: {result.error}'),
                        log_error(f'{filepath.name} [{result.index}] '
                                  f'{result.error_kind}: {result.error}'))
                continue

            out_path = output_dir / f'{filepath.stem}_p{result.index}{extension_for(fmt)}'
            try:
                export_image(result.image, out_path, fmt)
            except OSError as e:
                failed += 1
                log_msg(cli_error(f'  [{result.index}] cannot write {out_path.name}: {e}'),
                        log_error(f'{filepath.name} [{result.index}] cannot write '
                                  f'{out_path}: {e}'))
                continue

            decoded += 1
            log_msg(cli_success(
                f'  [{result.index}] {result.image.width}x{result.image.height} '
                f'-> {out_path.name} ({result.decode_time_ms:.1f} ms)'))
            for name, reason in result.image.fields.skipped.items():
                log_msg(cli_warning(f'      skipped {name}: {reason}'),
                        log_warn(f'{filepath.name} [{result.index}] skipped {name}: {reason}'))

    log_msg('\n' + cli_separator())
    log_msg(f'Done in {time.time() - t0:.1f}s')
    log_msg(f'  Decoded: {decoded}')
    log_msg(f'  Errors:  {failed}')
    return failed


if __name__ == '__main__':
    main()
