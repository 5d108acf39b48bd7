"""Static blacklist of client-only mods that break or bloat a dedicated server."""
import re
import shutil
from pathlib import Path

from .symbols import LogSymbols


# Lower-cased fragments matched against mod file names in mods/.
# Forge-era mods shipped in Technic packs, plus a few long-lived ones.
CLIENT_ONLY_MODS = (
    "optifine", "optifabric", "fastcraft",
    "betterfps", "dynamiclights", "dynamic_lights", "dynamic-lights",
    "journeymap", "voxelmap", "zansminimap", "reis_minimap", "reiminimap",
    "xaerominimap", "xaerosminimap", "xaerosworldmap",
    "mousetweaks", "mouse-tweaks", "inventorytweaks", "inventory-tweaks",
    "controlling", "defaultoptions", "default-options",
    "resourceloader", "resource-loader",
    "notenoughkeys", "not-enough-keys",
    "damageindicators", "torohealth", "neat-",
    "armorstatushud", "statuseffecthud", "betterfoliage", "better-foliage",
    "soundfilters", "sound-filters", "ambientsounds", "dynamicsurroundings",
    "smoothfont", "fancymenu", "custommainmenu", "mainmenutweaker",
    "keystrokes", "itemphysic", "itemzoom", "appleskin",
    "chunkanimator", "chunk-animator", "blur-", "fpsreducer",
    "replaymod", "schematica", "litematica", "worldeditcui",
    "textureoptimizer", "foamfix-client",
)

_SEPARATORS = re.compile(r'[\s_\-]+')


def is_client_only(file_name: str) -> bool:
    """Whether file_name looks like a client-only mod."""
    raw = file_name.lower()
    compact = _SEPARATORS.sub('', raw)
    return any(fragment in raw or fragment in compact for fragment in CLIENT_ONLY_MODS)


def clean_client_mods(mods_dir, log_callback=None, classifier=is_client_only):
    """Delete client-only mods from mods_dir. Returns the list of removed names."""
    def _log(message, **kwargs):
        if log_callback:
            log_callback(message, **kwargs)

    mods_dir = Path(mods_dir)
    if not mods_dir.is_dir():
        _log(f"{LogSymbols.WARNING} No mods folder found at {mods_dir}, nothing to clean", warning=True)
        return []

    removed = []
    for child in sorted(mods_dir.iterdir()):
        if not classifier(child.name):
            continue
        _log(f"  {LogSymbols.TRASH} Deleting client-only mod {child.name}")
        try:
            if child.is_dir():
                shutil.rmtree(child)
            else:
                child.unlink()
            removed.append(child.name)
        except OSError as e:
            _log(f"  {LogSymbols.ERROR} Could not delete {child.name}: {e}", error=True)
    return removed
