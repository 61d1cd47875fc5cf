from rotelib.builders.epub import EpubBuilder

BUILDERS = {
    "epub": EpubBuilder,
}
