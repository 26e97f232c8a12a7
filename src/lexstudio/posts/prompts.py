from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from .schema import PostContent

THEME_EXCERPT_CHARS = 200


@dataclass(frozen=True)
class PostFormat:
    name: str
    value: str


POST_FORMATS: List[PostFormat] = [
    PostFormat("Feed Instagram (Retrato 4:5) - 1080x1350px", "4:5"),
    PostFormat("Feed Instagram (Quadrado 1:1) - 1080x1080px", "1:1"),
    PostFormat("Stories / Reels (Vertical 9:16) - 1080x1920px", "9:16"),
    PostFormat("YouTube / LinkedIn (Paisagem 16:9) - 1920x1080px", "16:9"),
    PostFormat("Apresentação (Paisagem 4:3) - 1024x768px", "4:3"),
    PostFormat("Pin para Pinterest (Vertical 3:4) - 1080x1440px", "3:4"),
]

ASPECT_RATIO_DESCRIPTIONS: Dict[str, str] = {
    "4:5": "formato de retrato vertical (4 por 5)",
    "1:1": "formato quadrado (1 por 1)",
    "9:16": "formato de stories vertical (9 por 16)",
    "16:9": "formato de paisagem horizontal (16 por 9)",
    "4:3": "formato de apresentação horizontal (4 por 3)",
    "3:4": "formato de pin vertical (3 por 4)",
}

DEFAULT_AESTHETIC = (
    "Estética jurídica de luxo, ambiente escuro, profundidade de campo rasa, iluminação cinematográfica discreta, "
    "luz principal quente + luz de contorno sutil, detalhes em dourado e partículas douradas suaves, texturas "
    "ricas, pretos foscos, um toque de latão envelhecido. Paleta de cores: #0B0B0F, #1A1A1F, #C8A35F, #D4AF37, "
    "#F5F2E8, #8C6B3E. Adicione granulação de filme fina, vinheta leve, brilho suave apenas nos elementos "
    "dourados, realces brilhantes controlados. Composição usando a regra dos terços, espaço negativo generoso, "
    "toques de desfoque em primeiro plano, bokeh de fundo. Editorial, elegante, realista, premium. Sem neon, sem "
    "desenho animado, sem alta saturação. Foco seletivo, chiaroscuro dramático, bokeh de fundo, ultra-detalhe, "
    "assunto nítido, brilho de bom gosto, gradação de cores coesa."
)


def describe_aspect_ratio(code: str) -> str:
    return ASPECT_RATIO_DESCRIPTIONS.get(code, f"proporção de {code}")


def build_post_text_prompt(theme: str) -> str:
    return (
        "Você é um especialista em marketing de conteúdo para o setor jurídico, com foco em direito do trabalho.\n"
        "Sua tarefa é criar o conteúdo de texto para um post de mídia social com base no seguinte tema.\n"
        "O tom deve ser profissional, informativo e sóbrio, em conformidade com o Código de Ética da OAB "
        "(sem mercantilização).\n"
        "O idioma deve ser português do Brasil.\n"
        f'Tema: "{theme}"\n'
    )


def _text_rule(content: PostContent, with_text: bool) -> str:
    if with_text:
        return (
            "**[REGRA CRÍTICA #2 - INCLUSÃO DE TEXTO]**\n"
            "- Incorpore o seguinte texto de forma criativa, legível e elegante na imagem:\n"
            f'  - **Título Principal:** "{content.title}"\n'
            f'  - **Subtítulo (menor):** "{content.subtitle}"\n'
            "- A tipografia deve ser profissional e complementar ao estilo visual. O texto deve ser o ponto focal, "
            "mas integrado harmonicamente."
        )
    return (
        "**[REGRA CRÍTICA #2 - SEM TEXTO]**\n"
        "A imagem final NÃO DEVE conter NENHUM texto, NENHUMA letra, NENHUMA palavra, NENHUMA marca d'água. "
        "Deve ser puramente visual."
    )


def _style_rule(has_style_image: bool) -> str:
    if has_style_image:
        return (
            "- Use a primeira imagem de referência como INSPIRAÇÃO VISUAL (estilo, cores, composição). A proporção "
            "desta imagem de referência é irrelevante e DEVE SER IGNORADA."
        )
    return f"- Crie um fundo visual com base no seguinte estilo detalhado: {DEFAULT_AESTHETIC}"


def _logo_rule(has_style_image: bool, has_logo_image: bool) -> str:
    if not has_logo_image:
        return "- Não adicione nenhum logotipo."
    position = "segunda" if has_style_image else "primeira"
    return (
        f"- Pegue o logotipo da {position} imagem de referência e posicione-o discretamente em um canto inferior. "
        "A proporção desta imagem de referência do logotipo é irrelevante e DEVE SER IGNORADA para a composição "
        "final."
    )


def build_image_prompt(
    content: PostContent,
    aspect_ratio: str,
    with_text: bool,
    has_style_image: bool = False,
    has_logo_image: bool = False,
) -> str:
    """
    Image prompt for one variant of a post.

    The aspect-ratio rule comes first and overrides the shape of any
    reference image. Reference images are expected in the order style, logo.
    """
    return "\n".join(
        [
            "**[REGRA TÉCNICA #1 - FORMATO DE SAÍDA - PRIORIDADE MÁXIMA]**",
            "A proporção de aspecto da imagem final DEVE SER EXATAMENTE "
            f"**{aspect_ratio} ({describe_aspect_ratio(aspect_ratio)})**.",
            "Esta é a instrução mais importante. É um parâmetro técnico, não uma sugestão criativa.",
            "**IGNORE COMPLETAMENTE a proporção de aspecto e as dimensões de TODAS as imagens de referência "
            "fornecidas (tanto a imagem de estilo quanto a imagem do logotipo).**",
            "A única fonte de verdade para o formato da imagem final é esta regra.",
            "",
            "---",
            "",
            "**TAREFA: Criar uma imagem para um post de advocacia (português do Brasil).**",
            "",
            _text_rule(content, with_text),
            "",
            "**PASSO 1: TEMA DA IMAGEM**",
            "- O tema central da imagem deve ser uma representação visual abstrata e conceitual do seguinte conteúdo:",
            f'  - Título do post: "{content.title}"',
            f'  - Assunto principal: "{content.copy_text[:THEME_EXCERPT_CHARS]}..."',
            "- A imagem deve evocar profissionalismo, seriedade e confiança, alinhada a um escritório de advocacia.",
            "",
            "**PASSO 2: ESTILO VISUAL**",
            _style_rule(has_style_image),
            "",
            "**PASSO 3: LOGOTIPO (se fornecido)**",
            _logo_rule(has_style_image, has_logo_image),
            "",
        ]
    )
