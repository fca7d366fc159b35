# Résolution d'entrée attendue par le modèle de segmentation (largeur, hauteur).
TARGET_SIZE = (448, 448)

# Formats de pixels 32 bits supportés pour le buffer d'entrée du modèle.
# Chaque format donne l'ordre des canaux en mémoire.
PIXEL_FORMATS = {
    "ARGB32": ("A", "R", "G", "B"),
    "BGRA32": ("B", "G", "R", "A"),
    "RGBA32": ("R", "G", "B", "A"),
}
DEFAULT_PIXEL_FORMAT = "ARGB32"

# Couleurs du masque (format RGBA)
HIGHLIGHT_COLOR_RGBA = (255, 255, 255, 255)  # label sélectionné, opaque
DIM_COLOR_RGBA = (32, 32, 32, 128)  # autres labels, teinte sombre semi-transparente

# Opacité de l'overlay lors de la composition avec l'image source
OVERLAY_OPACITY = 0.75

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
